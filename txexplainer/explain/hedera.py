"""Hedera explanation engine: HBAR transfers, token transfer/burn/mint, fee and summary."""

from __future__ import annotations

from txexplainer.chain.registry import CHAINS
from txexplainer.explain.formatting import (
    format_hbar,
    format_token_amount,
    hedera_display_name,
    parse_hedera_timestamp,
    plain_name,
    timestamp_fields,
    to_number,
    TINYBAR_PER_HBAR,
)
from txexplainer.models.schema import (
    Action,
    BalanceChange,
    Explanation,
    HederaTokenTransfer,
    HederaTransaction,
    TokenInfo,
)

HBAR = CHAINS["hedera"].native_token

FALLBACK_SUMMARY = "Hedera transaction processed."
DEFAULT_TOKEN_DECIMALS = 8
BURN_ACCOUNTS = frozenset({"BURN", "0.0.0"})


def is_burn_account(account: str, burn_type: bool) -> bool:
    return account in BURN_ACCOUNTS or (burn_type and "BURN" in account.upper())


def token_decimals(leg: HederaTokenTransfer, info: TokenInfo | None) -> int:
    if leg.decimals is not None:
        return leg.decimals
    if info is not None and info.decimals is not None:
        return info.decimals
    return DEFAULT_TOKEN_DECIMALS


def _row(
    address: str,
    amount: str,
    coin_type: str,
    direction: str,
    account_names: dict[str, str],
) -> BalanceChange:
    name = account_names.get(address)
    who = plain_name(address, account_names, 8, 6)
    verb = "received" if direction == "increase" else "sent"
    return BalanceChange(
        address=address,
        amount=amount,
        coin_type=coin_type,
        change=direction,
        account_name=name,
        explanation=f"{who} {verb} {amount} {coin_type}",
    )


def _group_token_transfers(legs: list[HederaTokenTransfer]) -> dict[str, list[HederaTokenTransfer]]:
    groups: dict[str, list[HederaTokenTransfer]] = {}
    for leg in legs:
        groups.setdefault(leg.token_id or "UNKNOWN", []).append(leg)
    return groups


def explain_hedera_transaction(
    tx: HederaTransaction,
    account_names: dict[str, str] | None = None,
    token_info: dict[str, TokenInfo] | None = None,
) -> Explanation:
    """Pure function of the normalized transaction, resolved account names and token metadata."""
    names = dict(account_names or {})
    tokens = token_info or {}
    tx_type = (tx.name or "TRANSACTION").upper()
    burn_type = "BURN" in tx_type
    mint_type = "MINT" in tx_type

    involved: dict[str, None] = {}
    for leg in [*tx.transfers, *tx.token_transfers]:
        if leg.account:
            involved.setdefault(leg.account, None)

    parts: list[str] = []
    actions: list[Action] = []
    rows: list[BalanceChange] = []

    sent = [t for t in tx.transfers if t.amount < 0]
    received = [t for t in tx.transfers if t.amount > 0]
    if sent and received:
        frm, to = sent[0].account, received[0].account
        amount = format_hbar(sent[0].amount)
        parts.append(
            f"{hedera_display_name(frm, names)} transferred {amount} {HBAR} to {hedera_display_name(to, names)}"
        )
        actions.append(Action(
            type="transfer",
            description=f"Transferred {amount} {HBAR}",
            from_=frm,
            to=to,
            amount=f"{amount} {HBAR}",
        ))
        rows.append(_row(frm, amount, HBAR, "decrease", names))
        rows.append(_row(to, amount, HBAR, "increase", names))

    for token_id, legs in _group_token_transfers(tx.token_transfers).items():
        info = tokens.get(token_id)
        token = info.display if info else token_id
        token_sent = [t for t in legs if t.amount < 0]
        token_received = [t for t in legs if t.amount > 0]
        burn_destination = any(is_burn_account(t.account, burn_type) for t in token_received)
        burned = burn_type or (token_sent and not token_received)

        if (burned or burn_destination) and token_sent:
            source = token_sent[0]
            amount = format_token_amount(source.amount, token_decimals(source, info))
            parts.append(f"{hedera_display_name(source.account, names)} burned {amount} {token}")
            actions.append(Action(
                type="mutate",
                description=f"Burned {amount} {token}",
                from_=source.account,
                amount=amount,
                token=token,
            ))
            rows.append(_row(source.account, amount, token, "decrease", names))
        elif mint_type and token_received and not token_sent:
            treasury = token_received[0]
            amount = format_token_amount(treasury.amount, token_decimals(treasury, info))
            parts.append(f"{hedera_display_name(treasury.account, names)} minted {amount} {token}")
            actions.append(Action(
                type="create",
                description=f"Minted {amount} {token}",
                to=treasury.account,
                amount=amount,
                token=token,
            ))
            rows.append(_row(treasury.account, amount, token, "increase", names))
        elif token_sent and token_received:
            source, destination = token_sent[0], token_received[0]
            if is_burn_account(destination.account, burn_type):
                continue
            amount = format_token_amount(source.amount, token_decimals(source, info))
            parts.append(
                f"{hedera_display_name(source.account, names)} transferred {amount} {token}"
                f" to {hedera_display_name(destination.account, names)}"
            )
            actions.append(Action(
                type="transfer",
                description=f"Transferred {amount} {token}",
                from_=source.account,
                to=destination.account,
                amount=amount,
                token=token,
            ))
            rows.append(_row(source.account, amount, token, "decrease", names))
            rows.append(_row(destination.account, amount, token, "increase", names))

    fee = to_number(tx.fee) / TINYBAR_PER_HBAR
    fee_display = f"{fee:.9f} {HBAR}" if fee > 0 else f"0 {HBAR}"
    if fee > 0:
        parts.append(f"Transaction fee: {fee_display}")

    timestamp, timestamp_formatted = timestamp_fields(parse_hedera_timestamp(tx.timestamp))

    return Explanation(
        summary=". ".join(parts) + "." if parts else FALLBACK_SUMMARY,
        actions=actions,
        gas_used=fee_display,
        gas_price="0",
        total_gas_cost=fee_display,
        involved_addresses=list(involved),
        timestamp=timestamp,
        timestamp_formatted=timestamp_formatted,
        balance_changes=rows,
        account_names=names,
    )
