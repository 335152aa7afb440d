import json

from quotarelay import (
    ErrorInfo,
    Failure,
    MalformedResponse,
    QuotaExceeded,
    RawResponse,
    Success,
    UpstreamError,
    classify_response,
    is_quota_exceeded,
    parse_error_body,
)


def _envelope(message=None, reasons=()):
    err = {"errors": [{"reason": r} for r in reasons]}
    if message is not None:
        err["message"] = message
    return json.dumps({"error": err})


def test_parse_google_error_envelope():
    info = parse_error_body(_envelope("The request cannot be completed", ["quotaExceeded"]))
    assert info == ErrorInfo("The request cannot be completed", ("quotaExceeded",))


def test_parse_degrades_on_unexpected_bodies():
    assert parse_error_body(None) == ErrorInfo()
    assert parse_error_body("<html>502 Bad Gateway</html>") == ErrorInfo()
    assert parse_error_body("[1, 2]") == ErrorInfo()
    assert parse_error_body('{"error": 42}') == ErrorInfo()
    assert parse_error_body('{"error": {"message": 7, "errors": "nope"}}') == ErrorInfo()
    assert parse_error_body('{"error": "quota gone"}') == ErrorInfo(message="quota gone")


def test_quota_detected_in_message_case_insensitively():
    assert is_quota_exceeded(403, ErrorInfo("Quota exceeded for quota metric"))
    assert is_quota_exceeded(403, ErrorInfo("daily QUOTA reached"))


def test_quota_detected_in_reason_only():
    assert is_quota_exceeded(403, ErrorInfo("Forbidden", ("quotaExceeded",)))


def test_other_errors_are_not_quota():
    assert not is_quota_exceeded(500, ErrorInfo("Backend Error", ("backendError",)))
    assert not is_quota_exceeded(403, ErrorInfo(None, ("forbidden",)))
    assert not is_quota_exceeded(403, ErrorInfo())
    assert not is_quota_exceeded(403, None)


def test_classify_success():
    outcome = classify_response(RawResponse(200, '{"items": [1]}'))
    assert outcome == Success({"items": [1]})


def test_classify_quota():
    outcome = classify_response(RawResponse(403, _envelope("Quota exceeded")))
    assert isinstance(outcome, QuotaExceeded)
    assert outcome.status == 403  # noqa: PLR2004
    assert outcome.info.message == "Quota exceeded"


def test_classify_generic_error():
    outcome = classify_response(RawResponse(404, _envelope("Video not found", ["notFound"])))
    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, UpstreamError)
    assert outcome.error.status == 404  # noqa: PLR2004
    assert outcome.error.reasons == ("notFound",)
    assert "Video not found" in str(outcome.error)


def test_classify_unparseable_error_body_is_generic():
    outcome = classify_response(RawResponse(503, "Service Unavailable"))
    assert isinstance(outcome, Failure)
    assert isinstance(outcome.error, UpstreamError)
    assert outcome.error.message is None


def test_classify_malformed_success_bodies():
    for text in ("not json", '"not json"', "", "   ", "[1, 2]"):
        outcome = classify_response(RawResponse(200, text))
        assert isinstance(outcome, Failure), text
        assert isinstance(outcome.error, MalformedResponse), text
        assert outcome.error.status == 200  # noqa: PLR2004
