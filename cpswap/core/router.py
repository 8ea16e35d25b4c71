"""
Swap engine: exact-in swaps along a multi-pair path.

Each request runs through one state machine:

    PENDING -> VALIDATED -> QUOTED -> SETTLED
        \\___________\\___________\\____-> FAILED(reason)

- Validate: deadline, path shape, recipient, native-asset endpoints.
- Quote: one reserve read per hop, slippage check, per-hop plan. No mutation
  happens before the slippage check passes.
- Settle: pay the input into the first pair, then release each hop's output
  to the next hop's pair (the recipient, or the engine itself when unwrapping,
  for the last hop). The plan built at Quote is consumed unmodified unless
  `requote_on_settle` re-prices it from the store under the pair locks.

Settle runs while holding every pair on the path and inside the execution
context's atomic scope, so a failure leaves no observable reserve change.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from ..state.balances import Account, Amount, TokenId
from ..state.pairs import PairId
from ..state.reserves import ReserveStore
from .config import EngineConfig
from .errors import AmmError, ExpiredError, LiquidityError, SlippageError, ValidationError
from .interfaces import AssetLedger, ExecutionContext, NullExecutionContext, PairFactory, WrappedNative
from .locks import PairLocks
from .pricing import get_amount_out, get_amounts_in, get_amounts_out, require_account, validate_path
from .registry import PairRegistry

logger = logging.getLogger(__name__)


def _unix_now() -> int:
    return int(time.time())


def _hop_outputs(token_in_is_token0: bool, amount_out: Amount) -> Tuple[Amount, Amount]:
    return (0, amount_out) if token_in_is_token0 else (amount_out, 0)


class SwapKind(Enum):
    EXACT_TOKENS_FOR_TOKENS = "exact_tokens_for_tokens"
    EXACT_ETH_FOR_TOKENS = "exact_eth_for_tokens"
    EXACT_TOKENS_FOR_ETH = "exact_tokens_for_eth"


class SwapPhase(Enum):
    PENDING = "PENDING"
    VALIDATED = "VALIDATED"
    QUOTED = "QUOTED"
    SETTLED = "SETTLED"
    FAILED = "FAILED"


_TRANSITIONS: Dict[SwapPhase, FrozenSet[SwapPhase]] = {
    SwapPhase.PENDING: frozenset({SwapPhase.VALIDATED, SwapPhase.FAILED}),
    SwapPhase.VALIDATED: frozenset({SwapPhase.QUOTED, SwapPhase.FAILED}),
    SwapPhase.QUOTED: frozenset({SwapPhase.SETTLED, SwapPhase.FAILED}),
    SwapPhase.SETTLED: frozenset(),
    SwapPhase.FAILED: frozenset(),
}


@dataclass(frozen=True)
class SwapRequest:
    amount_in: Amount
    amount_out_min: Amount
    path: Tuple[TokenId, ...]
    to: Account
    deadline: int


@dataclass(frozen=True)
class HopPlan:
    pair_id: PairId
    token_in: TokenId
    token_out: TokenId
    amount_in: Amount
    amount0_out: Amount
    amount1_out: Amount
    destination: Account
    token_in_is_token0: bool


@dataclass
class SwapRun:
    """One pass of a request through the state machine."""

    request: SwapRequest
    kind: SwapKind
    phase: SwapPhase = SwapPhase.PENDING
    amounts: Tuple[Amount, ...] = ()
    plan: Tuple[HopPlan, ...] = ()
    error: Optional[str] = None
    failed_in: Optional[SwapPhase] = None
    history: List[SwapPhase] = field(default_factory=lambda: [SwapPhase.PENDING])

    def advance(self, phase: SwapPhase) -> None:
        if phase not in _TRANSITIONS[self.phase]:
            raise RuntimeError(f"illegal swap transition {self.phase.value} -> {phase.value}")
        self.phase = phase
        self.history.append(phase)

    def fail(self, exc: BaseException) -> None:
        self.failed_in = self.phase
        self.error = f"{type(exc).__name__}: {exc}"
        self.advance(SwapPhase.FAILED)

    @property
    def pair_ids(self) -> Tuple[PairId, ...]:
        return tuple(hop.pair_id for hop in self.plan)


class SwapEngine:
    """
    Orchestrates validation, quoting and chained settlement of swaps.

    Collaborators are injected; the engine keeps no reserve state of its own.
    """

    def __init__(
        self,
        *,
        registry: PairRegistry,
        store: ReserveStore,
        pairs: PairFactory,
        assets: AssetLedger,
        native: Optional[WrappedNative] = None,
        execution: Optional[ExecutionContext] = None,
        config: EngineConfig = EngineConfig(),
        clock: Callable[[], int] = _unix_now,
        locks: Optional[PairLocks] = None,
    ) -> None:
        self._registry = registry
        self._store = store
        self._pairs = pairs
        self._assets = assets
        self._native = native
        self._execution = execution if execution is not None else NullExecutionContext()
        self._config = config
        self._clock = clock
        self._locks = locks if locks is not None else PairLocks()

    @property
    def address(self) -> Account:
        return self._config.engine_address

    @property
    def config(self) -> EngineConfig:
        return self._config

    def wrapped_native(self) -> TokenId:
        if self._native is None:
            raise ValidationError("native asset is not configured")
        token = self._native.token
        if self._config.wrapped_native and self._config.wrapped_native != token:
            raise ValidationError(
                f"configured wrapped native {self._config.wrapped_native} does not match {token}"
            )
        return token

    # -- quoting passthroughs ------------------------------------------------

    def get_amounts_out(self, amount_in: Amount, path: Sequence[TokenId]) -> List[Amount]:
        return get_amounts_out(self._store, self._registry, amount_in, path)

    def get_amounts_in(self, amount_out: Amount, path: Sequence[TokenId]) -> List[Amount]:
        return get_amounts_in(self._store, self._registry, amount_out, path)

    # -- public swap entrypoints ---------------------------------------------

    def swap_exact_tokens_for_tokens(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[TokenId],
        to: Account,
        deadline: int,
        *,
        sender: Account,
    ) -> List[Amount]:
        request = SwapRequest(amount_in, amount_out_min, tuple(path), to, deadline)
        run = self.execute(request, sender=sender, kind=SwapKind.EXACT_TOKENS_FOR_TOKENS)
        return list(run.amounts)

    def swap_exact_eth_for_tokens(
        self,
        amount_out_min: Amount,
        path: Sequence[TokenId],
        to: Account,
        deadline: int,
        *,
        sender: Account,
        native_value: Amount,
    ) -> List[Amount]:
        request = SwapRequest(native_value, amount_out_min, tuple(path), to, deadline)
        run = self.execute(
            request,
            sender=sender,
            kind=SwapKind.EXACT_ETH_FOR_TOKENS,
            native_value=native_value,
        )
        return list(run.amounts)

    def swap_exact_tokens_for_eth(
        self,
        amount_in: Amount,
        amount_out_min: Amount,
        path: Sequence[TokenId],
        to: Account,
        deadline: int,
        *,
        sender: Account,
    ) -> List[Amount]:
        request = SwapRequest(amount_in, amount_out_min, tuple(path), to, deadline)
        run = self.execute(request, sender=sender, kind=SwapKind.EXACT_TOKENS_FOR_ETH)
        return list(run.amounts)

    def execute(
        self,
        request: SwapRequest,
        *,
        sender: Account,
        kind: SwapKind = SwapKind.EXACT_TOKENS_FOR_TOKENS,
        native_value: Amount = 0,
    ) -> SwapRun:
        """Run one request to SETTLED, or raise with `err.run` in FAILED."""
        run = SwapRun(request=request, kind=kind)
        try:
            self._validate(run, sender=sender, native_value=native_value)
            run.advance(SwapPhase.VALIDATED)
            logger.debug("swap validated kind=%s path=%s", kind.value, request.path)

            self._quote(run)
            run.advance(SwapPhase.QUOTED)
            logger.debug("swap quoted amounts=%s plan=%s", run.amounts, run.plan)

            self._settle(run, sender=sender)
            run.advance(SwapPhase.SETTLED)
        except AmmError as exc:
            run.fail(exc)
            exc.run = run
            logger.warning(
                "swap failed in %s: %s", run.failed_in.value if run.failed_in else "?", run.error
            )
            raise
        except Exception as exc:
            # Collaborator fault (custom store, pair or ledger); the atomic scope has rolled back.
            run.fail(exc)
            exc.run = run  # type: ignore[attr-defined]
            logger.warning(
                "swap failed in %s: %s",
                run.failed_in.value if run.failed_in else "?",
                run.error,
                exc_info=True,
            )
            raise

        logger.info(
            "swap settled kind=%s in=%d out=%d hops=%d to=%s",
            kind.value,
            run.amounts[0],
            run.amounts[-1],
            len(run.plan),
            request.to,
        )
        return run

    # -- phases -------------------------------------------------------------

    def _validate(self, run: SwapRun, *, sender: Account, native_value: Amount) -> None:
        request = run.request
        if not isinstance(request.deadline, int) or isinstance(request.deadline, bool):
            raise ValidationError("deadline must be an int (unix seconds)")
        now = self._clock()
        if request.deadline < now:
            raise ExpiredError(f"expired: deadline {request.deadline} < now {now}")

        validate_path(request.path, max_length=self._config.max_path_length)
        require_account("to", request.to)
        require_account("sender", sender)

        if not isinstance(request.amount_in, int) or isinstance(request.amount_in, bool) or request.amount_in <= 0:
            raise ValidationError(f"amount_in must be a positive int: {request.amount_in!r}")
        if (
            not isinstance(request.amount_out_min, int)
            or isinstance(request.amount_out_min, bool)
            or request.amount_out_min < 0
        ):
            raise ValidationError(f"amount_out_min must be a non-negative int: {request.amount_out_min!r}")

        if run.kind is SwapKind.EXACT_ETH_FOR_TOKENS:
            if request.path[0] != self.wrapped_native():
                raise ValidationError("invalid path: path[0] must be the wrapped native token")
            if native_value != request.amount_in:
                raise ValidationError(f"native_value {native_value} != amount_in {request.amount_in}")
        elif native_value:
            raise ValidationError("native_value is only accepted for native-in swaps")
        if run.kind is SwapKind.EXACT_TOKENS_FOR_ETH and request.path[-1] != self.wrapped_native():
            raise ValidationError("invalid path: path[-1] must be the wrapped native token")

    def _quote(self, run: SwapRun) -> None:
        request = run.request
        amounts = get_amounts_out(self._store, self._registry, request.amount_in, request.path)
        if amounts[-1] < request.amount_out_min:
            raise SlippageError(
                f"insufficient output amount: {amounts[-1]} < {request.amount_out_min}",
                expected_min=request.amount_out_min,
                actual=amounts[-1],
            )
        if amounts[-1] <= 0:
            raise LiquidityError("insufficient output amount")
        run.amounts = tuple(amounts)
        run.plan = self._build_plan(run.kind, request, amounts)

    def _build_plan(
        self, kind: SwapKind, request: SwapRequest, amounts: Sequence[Amount]
    ) -> Tuple[HopPlan, ...]:
        path = request.path
        pair_ids = [self._registry.pair_for(a, b) for a, b in zip(path, path[1:])]
        final_destination = self.address if kind is SwapKind.EXACT_TOKENS_FOR_ETH else request.to

        hops = []
        for i, pair_id in enumerate(pair_ids):
            token_in, token_out = path[i], path[i + 1]
            token_in_is_token0 = token_in == self._registry.key_of(pair_id).token0
            amount0_out, amount1_out = _hop_outputs(token_in_is_token0, amounts[i + 1])
            # A pair's custody account is its pair id.
            destination = pair_ids[i + 1] if i + 1 < len(pair_ids) else final_destination
            hops.append(
                HopPlan(
                    pair_id=pair_id,
                    token_in=token_in,
                    token_out=token_out,
                    amount_in=amounts[i],
                    amount0_out=amount0_out,
                    amount1_out=amount1_out,
                    destination=destination,
                    token_in_is_token0=token_in_is_token0,
                )
            )
        return tuple(hops)

    def _settle(self, run: SwapRun, *, sender: Account) -> None:
        with self._locks.hold(run.pair_ids):
            with self._execution.atomic():
                if self._config.requote_on_settle:
                    self._requote(run)
                self._pay_in(run, sender=sender)
                for hop in run.plan:
                    self._pairs.pair(hop.pair_id).swap(hop.amount0_out, hop.amount1_out, hop.destination)
                if run.kind is SwapKind.EXACT_TOKENS_FOR_ETH:
                    amount_out = run.amounts[-1]
                    self._native.withdraw(self.address, amount_out)
                    self._native.transfer_native(self.address, run.request.to, amount_out)

    def _requote(self, run: SwapRun) -> None:
        # Runs inside the atomic scope: reads the store only, never the registry.
        request = run.request
        fresh = [request.amount_in]
        for hop in run.plan:
            reserve0, reserve1 = self._store.get_reserves(hop.pair_id)
            if hop.token_in_is_token0:
                reserve_in, reserve_out = reserve0, reserve1
            else:
                reserve_in, reserve_out = reserve1, reserve0
            if fresh[-1] <= 0:
                raise LiquidityError("insufficient input amount for next hop")
            fresh.append(get_amount_out(fresh[-1], reserve_in, reserve_out))
        if fresh[-1] < request.amount_out_min:
            raise SlippageError(
                f"insufficient output amount on settle: {fresh[-1]} < {request.amount_out_min}",
                expected_min=request.amount_out_min,
                actual=fresh[-1],
            )
        if fresh[-1] <= 0:
            raise LiquidityError("insufficient output amount on settle")
        if tuple(fresh) != run.amounts:
            logger.debug("requote changed amounts %s -> %s", run.amounts, fresh)
            run.amounts = tuple(fresh)
            plan = []
            for i, hop in enumerate(run.plan):
                amount0_out, amount1_out = _hop_outputs(hop.token_in_is_token0, fresh[i + 1])
                plan.append(replace(hop, amount_in=fresh[i], amount0_out=amount0_out, amount1_out=amount1_out))
            run.plan = tuple(plan)

    def _pay_in(self, run: SwapRun, *, sender: Account) -> None:
        request = run.request
        first_pair = run.plan[0].pair_id
        if run.kind is SwapKind.EXACT_ETH_FOR_TOKENS:
            wrapped = self.wrapped_native()
            self._native.transfer_native(sender, self.address, request.amount_in)
            self._native.deposit(self.address, request.amount_in)
            self._assets.transfer(wrapped, self.address, first_pair, request.amount_in)
        else:
            self._assets.transfer_from(request.path[0], self.address, sender, first_pair, request.amount_in)

