"""External collaborators of the AMM engine.

The engine consumes token transfers, an LP share ledger and a project
registry through the protocols below. In-memory implementations back
the service and the tests.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable
from typing import Protocol, runtime_checkable

import structlog

from amm.constants import BPS_DENOMINATOR
from amm.errors import InsufficientLPBalance
from amm.models.types import normalize_address

logger = structlog.get_logger()


@runtime_checkable
class TokenBank(Protocol):
    """Token balances and transfers."""

    def balance_of(self, token: str, account: str) -> int: ...

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> bool:
        """Move tokens the sender owns. Returns False (or raises) on failure."""
        ...

    def transfer_from(self, token: str, owner: str, recipient: str, amount: int) -> bool:
        """Pull tokens from owner on the engine's behalf. Returns False (or raises) on failure."""
        ...


@runtime_checkable
class LPLedger(Protocol):
    """Authoritative LP share balances, one share class per canonical pair."""

    def mint(self, token_a: str, token_b: str, to: str, amount: int) -> None: ...

    def burn(self, token_a: str, token_b: str, from_: str, amount: int) -> None: ...

    def balance_of(self, token_a: str, token_b: str, owner: str) -> int: ...

    def total_supply(self, token_a: str, token_b: str) -> int: ...


@runtime_checkable
class ProjectRegistry(Protocol):
    """Launchpad registry of protected project tokens.

    ``address`` is the privileged launch collaborator allowed to create
    pools for project tokens and to lock liquidity.
    """

    @property
    def address(self) -> str: ...

    def is_project_token(self, token: str) -> bool: ...


TransferHook = Callable[[str, str, str, int], None]


class InMemoryTokenBank:
    """Dict-backed TokenBank.

    Supports fee-on-transfer tokens (``set_transfer_fee``), tokens whose
    transfers fail (``set_failing``) and a hook invoked on every transfer,
    before balances move.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)
        self._transfer_fee_bps: dict[str, int] = {}
        self._failing: set[str] = set()
        self.on_transfer: TransferHook | None = None

    def mint(self, token: str, account: str, amount: int) -> None:
        self._balances[(normalize_address(token), normalize_address(account))] += amount

    def set_transfer_fee(self, token: str, fee_bps: int) -> None:
        self._transfer_fee_bps[normalize_address(token)] = fee_bps

    def set_failing(self, token: str, failing: bool = True) -> None:
        if failing:
            self._failing.add(normalize_address(token))
        else:
            self._failing.discard(normalize_address(token))

    def balance_of(self, token: str, account: str) -> int:
        return self._balances.get((normalize_address(token), normalize_address(account)), 0)

    def transfer(self, token: str, sender: str, recipient: str, amount: int) -> bool:
        return self._move(token, sender, recipient, amount)

    def transfer_from(self, token: str, owner: str, recipient: str, amount: int) -> bool:
        return self._move(token, owner, recipient, amount)

    def _move(self, token: str, sender: str, recipient: str, amount: int) -> bool:
        token, sender, recipient = (normalize_address(a) for a in (token, sender, recipient))
        if self.on_transfer is not None:
            self.on_transfer(token, sender, recipient, amount)
        if token in self._failing:
            logger.debug("transfer_rejected", token=token[-8:], reason="failing_token")
            return False
        if self._balances.get((token, sender), 0) < amount:
            logger.debug("transfer_rejected", token=token[-8:], reason="insufficient_balance")
            return False
        fee = amount * self._transfer_fee_bps.get(token, 0) // BPS_DENOMINATOR
        self._balances[(token, sender)] -= amount
        self._balances[(token, recipient)] += amount - fee
        return True


class InMemoryLPLedger:
    """Dict-backed LPLedger keyed by the (token_a, token_b) pair as given."""

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], dict[str, int]] = defaultdict(lambda: defaultdict(int))
        self._supply: dict[tuple[str, str], int] = defaultdict(int)

    @staticmethod
    def _pair(token_a: str, token_b: str) -> tuple[str, str]:
        return normalize_address(token_a), normalize_address(token_b)

    def mint(self, token_a: str, token_b: str, to: str, amount: int) -> None:
        pair = self._pair(token_a, token_b)
        self._balances[pair][normalize_address(to)] += amount
        self._supply[pair] += amount

    def burn(self, token_a: str, token_b: str, from_: str, amount: int) -> None:
        pair = self._pair(token_a, token_b)
        owner = normalize_address(from_)
        if self._balances[pair][owner] < amount:
            raise InsufficientLPBalance(f"{owner} holds {self._balances[pair][owner]} LP, burning {amount}")
        self._balances[pair][owner] -= amount
        self._supply[pair] -= amount

    def transfer(self, token_a: str, token_b: str, sender: str, recipient: str, amount: int) -> None:
        """Move LP shares between holders (outside the engine)."""
        pair = self._pair(token_a, token_b)
        sender = normalize_address(sender)
        if self._balances[pair][sender] < amount:
            raise InsufficientLPBalance(f"{sender} holds {self._balances[pair][sender]} LP, sending {amount}")
        self._balances[pair][sender] -= amount
        self._balances[pair][normalize_address(recipient)] += amount

    def balance_of(self, token_a: str, token_b: str, owner: str) -> int:
        return self._balances[self._pair(token_a, token_b)].get(normalize_address(owner), 0)

    def total_supply(self, token_a: str, token_b: str) -> int:
        return self._supply.get(self._pair(token_a, token_b), 0)


class InMemoryProjectRegistry:
    """Fixed launch collaborator address plus a set of project tokens."""

    def __init__(self, address: str, project_tokens: set[str] | None = None) -> None:
        self._address = normalize_address(address)
        self._tokens = {normalize_address(t) for t in project_tokens or set()}

    @property
    def address(self) -> str:
        return self._address

    def register(self, token: str) -> None:
        self._tokens.add(normalize_address(token))

    def is_project_token(self, token: str) -> bool:
        return normalize_address(token) in self._tokens
