from data.broker_errors import (
    AccountUnresolved,
    BackendError,
    BackendFailure,
    BackendNotFound,
    InvalidTimeRange,
    ValidationError,
    classify_failure,
)


def test_not_found_gets_diagnostic():
    err = classify_failure(BackendFailure("not_found", "account 42"), "Portfolio request")
    assert isinstance(err, BackendNotFound)
    text = str(err)
    assert text.startswith("Portfolio request failed")
    assert "account 42" in text
    assert "sandbox" in text and "account id" in text


def test_other_codes_keep_message_verbatim():
    err = classify_failure(BackendFailure("INVALID_ARGUMENT", "30079: instrument not available"),
                           "Market buy SBER")
    assert isinstance(err, BackendError)
    assert str(err) == "Market buy SBER failed: 30079: instrument not available"
    assert err.category == "BackendError"


def test_failure_defaults():
    failure = BackendFailure("", "")
    assert failure.code == "UNKNOWN"
    assert failure.message == "UNKNOWN"


def test_account_unresolved_names_remedy():
    err = AccountUnresolved("Portfolio request")
    assert "TINKOFF_ACCOUNT_ID" in str(err)


def test_validation_hierarchy():
    assert issubclass(InvalidTimeRange, ValidationError)
    assert InvalidTimeRange("x").category == "InvalidTimeRange"
