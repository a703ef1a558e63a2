"""Sui explanation engine: object changes, balance reconciliation, balance rows, summary."""

from __future__ import annotations

from dataclasses import dataclass

from txexplainer.explain.formatting import (
    coin_symbol,
    display_name,
    format_amount,
    format_gas,
    is_coin_object,
    parse_timestamp_ms,
    plain_name,
    timestamp_fields,
)
from txexplainer.explain.summary import generate_summary
from txexplainer.models.schema import (
    Action,
    BalanceChange,
    Explanation,
    SuiBalanceChange,
    SuiObjectChange,
    SuiTransaction,
)

# Relative difference under which a send and a receive are treated as the same movement.
MATCH_TOLERANCE = 0.01


@dataclass(frozen=True)
class BalanceLeg:
    address: str
    amount: float
    coin_type: str

    @property
    def label(self) -> str:
        return f"{format_amount(self.amount)} {coin_symbol(self.coin_type)}"


def _owned(change: SuiBalanceChange) -> bool:
    return bool(change.owner) and not change.shared


def partition_balance_changes(changes: list[SuiBalanceChange]) -> tuple[list[BalanceLeg], list[BalanceLeg]]:
    """Split owned balance changes into (senders, recipients), amounts as magnitudes, input order kept."""
    senders: list[BalanceLeg] = []
    recipients: list[BalanceLeg] = []
    for change in changes:
        if not _owned(change):
            continue
        if change.amount > 0:
            recipients.append(BalanceLeg(change.owner, float(change.amount), change.coin_type))
        elif change.amount < 0:
            senders.append(BalanceLeg(change.owner, float(-change.amount), change.coin_type))
    return senders, recipients


def match_legs(senders: list[BalanceLeg], recipients: list[BalanceLeg]) -> list[tuple[int, int]]:
    """Greedy first-fit pairing of senders to recipients.

    For each sender in input order, the first unconsumed recipient
    whose amount is within MATCH_TOLERANCE of the sender's is taken. This is order
    dependent and not an optimal assignment; multi-party transfers can pair differently
    than a human would.
    """
    consumed: set[int] = set()
    pairs: list[tuple[int, int]] = []
    for i, sender in enumerate(senders):
        for j, recipient in enumerate(recipients):
            if j in consumed:
                continue
            if abs(sender.amount - recipient.amount) / sender.amount < MATCH_TOLERANCE:
                pairs.append((i, j))
                consumed.add(j)
                break
    return pairs


def reconcile_balance_changes(
    changes: list[SuiBalanceChange],
    tx_sender: str,
    account_names: dict[str, str],
) -> list[Action]:
    """Transfer actions for matched pairs, then unmatched sends, then unmatched receives."""
    senders, recipients = partition_balance_changes(changes)
    pairs = match_legs(senders, recipients)
    matched_senders = {i for i, _ in pairs}
    matched_recipients = {j for _, j in pairs}

    actions = []
    for i, j in pairs:
        sender, recipient = senders[i], recipients[j]
        actions.append(Action(
            type="transfer",
            description=(
                f"Transferred {sender.label} from {display_name(sender.address, account_names)}"
                f" to {display_name(recipient.address, account_names)}"
            ),
            from_=sender.address,
            to=recipient.address,
            amount=sender.label,
            token=sender.coin_type,
        ))

    for i, sender in enumerate(senders):
        if i in matched_senders:
            continue
        actions.append(Action(
            type="transfer",
            description=f"{display_name(sender.address, account_names)} sent {sender.label}",
            from_=sender.address,
            amount=sender.label,
            token=sender.coin_type,
        ))

    for j, recipient in enumerate(recipients):
        if j in matched_recipients:
            continue
        description = f"{display_name(recipient.address, account_names)} received {recipient.label}"
        if tx_sender:
            description += f" from {display_name(tx_sender, account_names)}"
        actions.append(Action(
            type="transfer",
            description=description,
            from_=tx_sender or None,
            to=recipient.address,
            amount=recipient.label,
            token=recipient.coin_type,
        ))
    return actions


def build_balance_rows(changes: list[SuiBalanceChange], account_names: dict[str, str]) -> list[BalanceChange]:
    """One row per owner and coin type with a non-zero net movement."""
    totals: dict[tuple[str, str], int] = {}
    for change in changes:
        if not _owned(change):
            continue
        key = (change.owner, change.coin_type)
        totals[key] = totals.get(key, 0) + change.amount

    rows = []
    for (owner, coin_type), net in totals.items():
        if net == 0:
            continue
        amount = format_amount(abs(net))
        name = account_names.get(owner)
        who = plain_name(owner, account_names, 8, 6)
        direction = "increase" if net > 0 else "decrease"
        verb = "received" if net > 0 else "sent"
        rows.append(BalanceChange(
            address=owner,
            amount=amount,
            coin_type=coin_type,
            change=direction,
            account_name=name,
            explanation=f"{who} {verb} {amount} {coin_symbol(coin_type)}",
        ))
    return rows


def _object_action(change: SuiObjectChange, tx_sender: str, account_names: dict[str, str]) -> Action | None:
    if change.type == "created":
        return Action(
            type="create",
            description=f"New object created: {change.object_id[:16]}...",
            object_id=change.object_id,
        )
    if change.type == "mutated":
        return Action(
            type="mutate",
            description=f"Object mutated: {change.object_id[:16]}...",
            object_id=change.object_id,
        )
    if change.type != "transferred":
        return None

    recipient = change.recipient or "Unknown"
    sender = change.sender or tx_sender
    receiver_display = display_name(recipient, account_names)
    if is_coin_object(change.object_type):
        amount = None
        if change.amount:
            amount = f"{format_amount(abs(change.amount))} {coin_symbol(change.object_type)}"
        what = amount or "token"
        if sender:
            description = f"Transferred {what} from {display_name(sender, account_names)} to {receiver_display}"
        else:
            description = f"Transferred {what} to {receiver_display}"
        return Action(
            type="transfer",
            description=description,
            from_=sender or None,
            to=recipient,
            amount=amount,
            token=change.object_type,
        )

    if sender:
        description = f"Object transferred from {display_name(sender, account_names)} to {receiver_display}"
    else:
        description = f"Object transferred to {receiver_display}"
    return Action(
        type="transfer",
        description=description,
        from_=sender or None,
        to=recipient,
        object_id=change.object_id,
    )


def receiver_addresses(tx: SuiTransaction) -> list[str]:
    """Recipients worth a name lookup, in first-seen order."""
    seen: dict[str, None] = {}
    for change in tx.object_changes:
        if change.type == "transferred" and change.recipient:
            seen.setdefault(change.recipient, None)
    for change in tx.balance_changes:
        if _owned(change) and change.amount > 0:
            seen.setdefault(change.owner, None)
    return list(seen)


def explain_sui_transaction(tx: SuiTransaction, account_names: dict[str, str] | None = None) -> Explanation:
    """Pure function of the normalized transaction and the resolved name map."""
    names = dict(account_names or {})
    involved: dict[str, None] = {}
    if tx.sender:
        involved[tx.sender] = None

    actions: list[Action] = []
    created = transferred = mutated = 0
    for change in tx.object_changes:
        action = _object_action(change, tx.sender, names)
        if action is None:
            continue
        if change.type == "created":
            created += 1
        elif change.type == "mutated":
            mutated += 1
        else:
            transferred += 1
            if change.recipient:
                involved.setdefault(change.recipient, None)
            if change.sender or tx.sender:
                involved.setdefault(change.sender or tx.sender, None)
        actions.append(action)

    for change in tx.balance_changes:
        if _owned(change):
            involved.setdefault(change.owner, None)
    actions.extend(reconcile_balance_changes(tx.balance_changes, tx.sender, names))

    balance_rows = build_balance_rows(tx.balance_changes, names)
    total_gas = format_gas(tx.gas.total)

    ms = tx.timestamp_ms if tx.timestamp_ms is not None else parse_timestamp_ms(tx.timestamp)
    timestamp, timestamp_formatted = timestamp_fields(ms)

    summary = generate_summary(actions, created, mutated, tx.move_calls, names, total_gas, balance_rows)

    return Explanation(
        summary=summary,
        actions=actions,
        gas_used=format_gas(tx.gas.computation_cost),
        gas_price=format_gas(tx.gas.gas_price),
        total_gas_cost=total_gas,
        objects_created=created,
        objects_transferred=transferred,
        objects_mutated=mutated,
        involved_addresses=list(involved),
        move_calls=tx.move_calls,
        timestamp=timestamp,
        timestamp_formatted=timestamp_formatted,
        balance_changes=balance_rows,
        account_names=names,
    )
