"""
Webhook payload parsing.

`parse_payload` turns any decoded JSON value into one of three shapes:

- NotifierShape: address-activity notification (`event.network` + `event.activity[]`);
  the first activity entry becomes a NormalizedPayment.
- RpcShape: raw JSON-RPC subscription push (`params.result`); acknowledged, never credited.
- Unrecognized: anything else, with a short reason for the log.

It never raises on unexpected shapes.
"""

import math
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class NormalizedPayment:
    from_address: str
    to_address: str
    value: float
    tx_hash: str
    asset: str | None
    network: str | None


@dataclass(frozen=True)
class NotifierShape:
    payment: NormalizedPayment


@dataclass(frozen=True)
class RpcShape:
    result: Any


@dataclass(frozen=True)
class Unrecognized:
    reason: str


ParsedPayload = Union[NotifierShape, RpcShape, Unrecognized]


def _text(v: Any) -> str:
    return v.strip() if isinstance(v, str) else ""


def _address(v: Any) -> str:
    return _text(v).lower()


def parse_amount(v: Any) -> float:
    """Parse a numeric or numeric-string amount; anything unparseable is NaN."""
    if isinstance(v, bool):
        return math.nan
    if isinstance(v, (int, float)):
        return float(v)
    if isinstance(v, str):
        try:
            return float(v.strip())
        except ValueError:
            return math.nan
    return math.nan


def _parse_notifier(event: dict) -> ParsedPayload:
    activity = event.get("activity")
    if not isinstance(activity, list) or not activity:
        return Unrecognized("no_activity")
    tx = activity[0] if isinstance(activity[0], dict) else {}
    network = event.get("network")
    asset = tx.get("asset")
    return NotifierShape(
        NormalizedPayment(
            from_address=_address(tx.get("fromAddress")),
            to_address=_address(tx.get("toAddress")),
            value=parse_amount(tx.get("value")),
            tx_hash=_text(tx.get("hash")),
            asset=asset if isinstance(asset, str) else None,
            network=network if isinstance(network, str) else None,
        )
    )


def parse_payload(payload: Any) -> ParsedPayload:
    if not isinstance(payload, dict):
        return Unrecognized("not_an_object")
    event = payload.get("event")
    if event:
        if not isinstance(event, dict):
            return Unrecognized("event_not_an_object")
        return _parse_notifier(event)
    params = payload.get("params")
    if isinstance(params, dict) and params.get("result") is not None:
        return RpcShape(params["result"])
    return Unrecognized("unknown_format")
