import pytest

from kproxy.deploy import DeploySettings, DeployValidationError


@pytest.mark.parametrize(
    "hosts, canonical_host, expected_error",
    [
        (["example.com", "www.example.com"], "example.com", None),
        (["example.com", "www.example.com"], "www.example.com", None),
        (
            ["example.com", "www.example.com"],
            "api.example.com",
            "canonical-host 'api.example.com' must be present in the hosts list: [example.com www.example.com]",
        ),
        (["example.com", "www.example.com"], "", None),
        ([], "example.com", None),
        ([], "", None),
    ],
    ids=[
        "valid canonical host in hosts list",
        "valid canonical host in hosts list with www",
        "canonical host not in hosts list",
        "canonical host empty with hosts",
        "canonical host with no hosts",
        "both canonical host and hosts empty",
    ],
)
def test_canonical_host_validation(hosts, canonical_host, expected_error):
    settings = DeploySettings(service="test-service", hosts=hosts, canonical_host=canonical_host, tls_enabled=False)

    if expected_error is None:
        settings.validate(())
        assert settings.canonical_host == canonical_host
    else:
        with pytest.raises(DeployValidationError) as info:
            settings.validate(())
        assert expected_error in str(info.value)


def test_canonical_host_ignored_when_first_host_is_wildcard():
    settings = DeploySettings(hosts=[""], canonical_host="example.com")
    settings.validate(())
    assert settings.hosts == [""]


def test_max_request_body_requires_request_buffering():
    with pytest.raises(DeployValidationError, match="max-request-body can only be set"):
        DeploySettings(max_request_body_size=10).validate({"max-request-body"})


def test_max_request_body_allowed_with_request_buffering():
    settings = DeploySettings(buffer_requests=True, max_request_body_size=10)
    settings.validate({"max-request-body", "buffer-requests"})
    assert settings.max_request_body_size == 10


def test_max_response_body_requires_response_buffering():
    with pytest.raises(DeployValidationError, match="max-response-body can only be set"):
        DeploySettings(max_response_body_size=10).validate({"max-response-body"})


def test_forward_headers_defaults_on_without_tls():
    settings = DeploySettings()
    settings.validate(())
    assert settings.forward_headers is True


def test_forward_headers_defaults_off_with_tls():
    settings = DeploySettings(tls_enabled=True, hosts=["example.com"], path_prefixes=["/"])
    settings.validate(())
    assert settings.forward_headers is False


def test_explicit_forward_headers_is_kept():
    settings = DeploySettings(forward_headers=False)
    settings.validate({"forward-headers"})
    assert settings.forward_headers is False


def test_tls_requires_host():
    with pytest.raises(DeployValidationError, match="host must be set when using TLS"):
        DeploySettings(tls_enabled=True, path_prefixes=["/"]).validate(())


def test_tls_requires_root_path():
    settings = DeploySettings(tls_enabled=True, hosts=["example.com"], path_prefixes=["/api"])
    with pytest.raises(DeployValidationError, match="root path service"):
        settings.validate(())