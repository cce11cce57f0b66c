import xml.etree.ElementTree as ET

import pytest

from infrastructure.external.payments import xml_codec
from infrastructure.external.payments.exceptions import XmlDecodeError


def _notification(**overrides) -> str:
    fields = {
        "orderID": "c1",
        "remoteID": "R1",
        "amount": "99.50",
        "currency": "PLN",
        "gatewayID": "106",
        "paymentDate": "20261019120000",
        "paymentStatus": "SUCCESS",
        "paymentStatusDetails": "AUTHORIZED",
    }
    fields.update(overrides)
    inner = "".join(f"<{k}>{v}</{k}>" for k, v in fields.items() if v is not None)
    return (
        '<?xml version="1.0" encoding="UTF-8"?>'
        "<transactionList><serviceID>100</serviceID>"
        f"<transactions><transaction>{inner}</transaction></transactions>"
        "<hash>abc123</hash></transactionList>"
    )


def test_parse_webhook_reads_transaction_fields():
    payload = xml_codec.parse_webhook(_notification().encode("utf-8"))
    assert payload.cart_id == "c1"
    assert payload.gateway_transaction_id == "R1"
    assert payload.amount == "99.50"
    assert payload.currency_code == "PLN"
    assert payload.status_code == "SUCCESS"
    assert payload.status_detail == "AUTHORIZED"
    assert payload.signature == "abc123"


def test_parse_webhook_accepts_str_input():
    assert xml_codec.parse_webhook(_notification()).cart_id == "c1"


@pytest.mark.parametrize("missing", ["orderID", "paymentStatus"])
def test_parse_webhook_rejects_missing_required_element(missing):
    with pytest.raises(XmlDecodeError) as exc_info:
        xml_codec.parse_webhook(_notification(**{missing: None}))
    assert exc_info.value.details["fields"]


def test_parse_webhook_rejects_missing_hash():
    document = _notification().replace("<hash>abc123</hash>", "")
    with pytest.raises(XmlDecodeError):
        xml_codec.parse_webhook(document)


@pytest.mark.parametrize(
    "document",
    [
        "",
        "   ",
        "<transactionList><transactions>",
        "not xml at all",
        "<other/>",
        "<transactionList><transactions/><hash>x</hash></transactionList>",
    ],
)
def test_parse_webhook_rejects_malformed_documents(document):
    with pytest.raises(XmlDecodeError):
        xml_codec.parse_webhook(document)


def test_parse_webhook_rejects_dtd():
    document = '<?xml version="1.0"?><!DOCTYPE x [<!ENTITY e "boom">]>' + _notification()[38:]
    with pytest.raises(XmlDecodeError):
        xml_codec.parse_webhook(document)


def test_parse_initiate_response_nested_and_root():
    nested = (
        "<response><transaction><orderID>c1</orderID><status>PENDING</status>"
        "<redirecturl>https://pay.test/go</redirecturl></transaction></response>"
    )
    result = xml_codec.parse_initiate_response(nested)
    assert result.status == "PENDING"
    assert result.redirect_url == "https://pay.test/go"
    assert result.order_id == "c1"

    rejected = xml_codec.parse_initiate_response(
        "<transaction><status>FAILURE</status><reason>Card declined</reason></transaction>"
    )
    assert rejected.status == "FAILURE"
    assert rejected.reason == "Card declined"
    assert rejected.redirect_url is None


def test_parse_initiate_response_without_transaction():
    with pytest.raises(XmlDecodeError):
        xml_codec.parse_initiate_response("<error><reason>x</reason></error>")


def test_build_confirmation_layout():
    document = xml_codec.build_confirmation("100", "c1", "CONFIRMED", "sig")
    assert document.startswith('<?xml version="1.0" encoding="UTF-8"?>')

    root = ET.fromstring(document.split("?>", 1)[1])
    assert root.tag == "confirmationList"
    assert root.findtext("serviceID") == "100"
    assert root.findtext("transactionsConfirmations/transactionConfirmed/orderID") == "c1"
    assert root.findtext("transactionsConfirmations/transactionConfirmed/confirmation") == "CONFIRMED"
    assert root.findtext("hash") == "sig"


def test_build_confirmation_escapes_text():
    document = xml_codec.build_confirmation("100", "a&b<c", "NOTCONFIRMED", "sig")
    root = ET.fromstring(document.split("?>", 1)[1])
    assert root.findtext("transactionsConfirmations/transactionConfirmed/orderID") == "a&b<c"


def test_parse_error_message():
    assert xml_codec.parse_error_message("<error><description>Invalid hash</description></error>") == "Invalid hash"
    assert xml_codec.parse_error_message("<transaction><reason>Declined</reason></transaction>") == "Declined"
    assert xml_codec.parse_error_message("<error><code>1</code></error>") is None
    assert xml_codec.parse_error_message("not xml") is None
