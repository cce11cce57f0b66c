"""
XML codec for Autopay documents.

Inbound documents (transaction notifications, payment initiation answers) are
decoded into pydantic models; documents missing required elements are
rejected instead of producing half-filled trees. The confirmation answer is
rendered from a fixed element layout.
"""
from __future__ import annotations

import xml.etree.ElementTree as ET
from typing import Optional, Union

from pydantic import ValidationError

from application.dtos.payments import InitiatePaymentResponse, WebhookPayload
from infrastructure.external.payments.exceptions import XmlDecodeError

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'

WEBHOOK_TRANSACTION_FIELDS = (
    "orderID",
    "remoteID",
    "amount",
    "currency",
    "gatewayID",
    "paymentDate",
    "paymentStatus",
    "paymentStatusDetails",
)

INITIATE_FIELDS = ("orderID", "status", "redirecturl", "reason")


def _load(document: Union[str, bytes]) -> ET.Element:
    if isinstance(document, str):
        raw = document.strip().encode("utf-8")
    else:
        raw = document.strip()
    if not raw:
        raise XmlDecodeError("Empty XML document")
    if b"<!DOCTYPE" in raw or b"<!ENTITY" in raw:
        raise XmlDecodeError("DTD declarations are not accepted")
    try:
        return ET.fromstring(raw)
    except ET.ParseError as exc:
        raise XmlDecodeError(f"Malformed XML: {exc}") from exc


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None or element.text is None:
        return None
    value = element.text.strip()
    return value or None


def _children(parent: ET.Element, names: tuple[str, ...]) -> dict[str, Optional[str]]:
    return {name: _text(parent.find(name)) for name in names}


def parse_webhook(document: Union[str, bytes]) -> WebhookPayload:
    """Decode a `transactionList` notification carrying exactly one transaction."""
    root = _load(document)
    if root.tag != "transactionList":
        raise XmlDecodeError(f"Unexpected root element: {root.tag}", details={"root": root.tag})

    transactions = root.findall("./transactions/transaction")
    if len(transactions) != 1:
        raise XmlDecodeError(
            "Expected exactly one transaction",
            details={"transactions": len(transactions)},
        )

    data = _children(transactions[0], WEBHOOK_TRANSACTION_FIELDS)
    data["hash"] = _text(root.find("hash"))
    try:
        return WebhookPayload.model_validate(data)
    except ValidationError as exc:
        missing = [".".join(str(p) for p in err["loc"]) for err in exc.errors()]
        raise XmlDecodeError("Notification is missing required elements", details={"fields": missing}) from exc


def parse_initiate_response(document: Union[str, bytes]) -> InitiatePaymentResponse:
    """Decode the answer to a payment initiation request."""
    root = _load(document)
    transaction = root if root.tag == "transaction" else root.find("transaction")
    if transaction is None:
        raise XmlDecodeError("Response has no transaction element", details={"root": root.tag})

    data = _children(transaction, INITIATE_FIELDS)
    if data["orderID"] is None:
        data["orderID"] = _text(root.find("orderID"))
    return InitiatePaymentResponse.model_validate(data)


def build_confirmation(service_id: str, order_id: str, confirmation: str, signature: str) -> str:
    """Render the `confirmationList` acknowledgment."""
    root = ET.Element("confirmationList")
    ET.SubElement(root, "serviceID").text = service_id
    confirmations = ET.SubElement(root, "transactionsConfirmations")
    confirmed = ET.SubElement(confirmations, "transactionConfirmed")
    ET.SubElement(confirmed, "orderID").text = order_id
    ET.SubElement(confirmed, "confirmation").text = confirmation
    ET.SubElement(root, "hash").text = signature
    return XML_DECLARATION + ET.tostring(root, encoding="unicode")


ERROR_MESSAGE_ELEMENTS = ("description", "reason", "message", "statusDescription")


def parse_error_message(document: Union[str, bytes]) -> Optional[str]:
    """First error description found in a provider error document, or None."""
    try:
        root = _load(document)
    except XmlDecodeError:
        return None
    for name in ERROR_MESSAGE_ELEMENTS:
        value = _text(root if root.tag == name else root.find(f".//{name}"))
        if value:
            return value
    return None
