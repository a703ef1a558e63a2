"""Deterministic natural-language summary for Sui transactions."""

from __future__ import annotations

import re
from dataclasses import dataclass

from txexplainer.explain.formatting import coin_symbol, display_name, extract_token_type, pluralize
from txexplainer.labels.known import package_label
from txexplainer.models.schema import Action, BalanceChange, MoveCallInfo

FALLBACK_SUMMARY = "Transaction executed successfully"

MAX_TRANSFER_CLAUSES = 3
MAX_BALANCE_ACCOUNTS = 5
MAX_LISTED_PACKAGES = 3

_SENT_AND_RECEIVED = re.compile(r"^(.+?)\s+(sent.+?and received.+?)$")


@dataclass(frozen=True)
class CallProfile:
    """What the Move calls of a transaction say about its type."""

    swap_calls: int = 0
    router_calls: int = 0
    oracle_calls: int = 0
    vaa_calls: int = 0

    @property
    def is_swap(self) -> bool:
        return self.swap_calls > 0

    @property
    def is_multi_swap(self) -> bool:
        return self.router_calls > 0 and self.swap_calls > 1

    @property
    def is_oracle_update(self) -> bool:
        return self.oracle_calls > 0

    @property
    def is_cross_chain(self) -> bool:
        return self.vaa_calls > 0


def _is_swap_call(call: MoveCallInfo) -> bool:
    return call.function == "swap" or call.module == "swap"


def classify_move_calls(move_calls: list[MoveCallInfo]) -> CallProfile:
    return CallProfile(
        swap_calls=sum(1 for c in move_calls if _is_swap_call(c)),
        router_calls=sum(1 for c in move_calls if c.module == "router"),
        oracle_calls=sum(1 for c in move_calls if c.module == "pyth" or "pyth" in (c.package or "")),
        vaa_calls=sum(1 for c in move_calls if c.module == "vaa"),
    )


def _type_clauses(profile: CallProfile, actions: list[Action], account_names: dict[str, str]) -> list[str]:
    if profile.is_oracle_update:
        n = profile.oracle_calls
        suffix = " (cross-chain data)" if profile.is_cross_chain else ""
        return [f"Updated {n} price {pluralize(n, 'feed')} via Pyth oracle{suffix}"]
    if profile.is_multi_swap:
        return [f"Executed {profile.swap_calls} token swaps through a DEX aggregator"]
    if profile.is_swap:
        return ["Executed a token swap"]

    transfers = [a for a in actions if a.type == "transfer" and a.from_ and a.to]
    clauses = []
    for transfer in transfers[:MAX_TRANSFER_CLAUSES]:
        sender = display_name(transfer.from_, account_names)
        receiver = display_name(transfer.to, account_names)
        token_id = f" #{transfer.object_id[:8]}" if transfer.object_id else ""
        if transfer.amount:
            clauses.append(f"{sender} transferred {transfer.amount}{token_id} to {receiver}")
        else:
            token_type = extract_token_type(transfer.token) if transfer.token else "Token"
            clauses.append(f"{sender} transferred {token_type}{token_id} to {receiver}")
    overflow = len(transfers) - MAX_TRANSFER_CLAUSES
    if overflow > 0:
        clauses.append(f"... and {overflow} more {pluralize(overflow, 'transfer')}")
    return clauses


def _balance_clauses(
    balance_changes: list[BalanceChange],
    account_names: dict[str, str],
    is_swap: bool,
) -> list[str]:
    by_account: dict[str, list[BalanceChange]] = {}
    for change in balance_changes:
        by_account.setdefault(change.address, []).append(change)

    summaries = []
    for address, changes in list(by_account.items())[:MAX_BALANCE_ACCOUNTS]:
        sent = [f"{c.amount} {coin_symbol(c.coin_type)}" for c in changes if c.change == "decrease"]
        received = [f"{c.amount} {coin_symbol(c.coin_type)}" for c in changes if c.change == "increase"]
        parts = []
        if sent:
            parts.append(f"sent {' and '.join(sent)}")
        if received:
            parts.append(f"received {' and '.join(received)}")
        if parts:
            summaries.append(f"{display_name(address, account_names)} {' and '.join(parts)}")

    clauses = []
    if summaries:
        if is_swap and len(summaries) == 1:
            match = _SENT_AND_RECEIVED.match(summaries[0])
            if match:
                exchanged = match.group(2).replace("sent ", "", 1).replace(" and received ", " for ", 1)
                clauses.append(f"{match.group(1)} exchanged {exchanged}")
            else:
                clauses.append(summaries[0])
        else:
            clauses.append(", ".join(summaries))

    overflow = len(by_account) - MAX_BALANCE_ACCOUNTS
    if overflow > 0:
        clauses.append(f"... and {overflow} more {pluralize(overflow, 'account')} with balance changes")
    return clauses


def _package_clause(move_calls: list[MoveCallInfo]) -> str:
    packages = list(dict.fromkeys(package_label(c.package) for c in move_calls))
    if len(packages) <= MAX_LISTED_PACKAGES:
        return f"Called Move functions from {pluralize(len(packages), 'package')}: {', '.join(packages)}"
    n = len(move_calls)
    return f"Executed {n} Move function {pluralize(n, 'call')} from {len(packages)} packages"


def generate_summary(
    actions: list[Action],
    created: int,
    mutated: int,
    move_calls: list[MoveCallInfo],
    account_names: dict[str, str],
    gas_cost: str,
    balance_changes: list[BalanceChange],
) -> str:
    """Assemble the ordered summary clauses and join them with '. '."""
    profile = classify_move_calls(move_calls)
    incidental = profile.is_swap or profile.is_oracle_update

    parts = _type_clauses(profile, actions, account_names)

    if created > 0:
        parts.append(f"{created} new {pluralize(created, 'object was', 'objects were')} created")

    if gas_cost and gas_cost not in ("0 SUI", "0 MIST"):
        parts.append(f"Gas used: {gas_cost}")

    if balance_changes:
        parts.extend(_balance_clauses(balance_changes, account_names, profile.is_swap))

    if mutated > 0 and not incidental:
        parts.append(f"{mutated} {pluralize(mutated, 'object was', 'objects were')} modified")

    if move_calls and not incidental:
        parts.append(_package_clause(move_calls))

    return ". ".join(parts) or FALLBACK_SUMMARY
