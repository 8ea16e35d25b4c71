"""
Command line front end over a snapshot file.

    cpswap quote --snapshot state.json --amount-in 100 A B C
    cpswap swap --snapshot state.json --sender alice --to alice --amount-in 100 A B --write
    cpswap add-liquidity --snapshot state.json --sender alice --to alice A B 1000 1000 --write

Token arguments may be ids or, with --config, symbols from the token list.
Amounts are integers in smallest units, or decimal strings for tokens whose
decimals are known from --config.

Exit codes: 0 success, 1 bad input files or arguments, 2 engine error.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from ..core.config import EngineConfig
from ..core.errors import AmmError
from ..core.liquidity import LiquidityManager
from ..core.locks import PairLocks
from ..core.pricing import deadline_after, min_amount_out
from ..core.router import SwapEngine, SwapKind, SwapRequest
from ..state.balances import Amount, TokenId
from ..state.tokens import TokenList
from .config import ConfigError, configure_logging, load_config
from .snapshot import dump_snapshot, ledger_from_snapshot, load_snapshot, snapshot_from_ledger

logger = logging.getLogger(__name__)


class _Context:
    def __init__(self, args: argparse.Namespace) -> None:
        if args.config:
            self.config, self.tokens = load_config(args.config)
        else:
            self.config, self.tokens = EngineConfig.from_env(), TokenList()
        self.snapshot_path = Path(args.snapshot)
        self.ledger, self.registry = ledger_from_snapshot(load_snapshot(self.snapshot_path))
        locks = PairLocks()
        collaborators: Dict[str, Any] = dict(
            registry=self.registry,
            store=self.ledger,
            pairs=self.ledger,
            assets=self.ledger,
            native=self.ledger,
            execution=self.ledger,
            config=self.config,
            locks=locks,
        )
        self.engine = SwapEngine(**collaborators)
        self.liquidity = LiquidityManager(**collaborators)

    def token(self, ref: str) -> TokenId:
        return self.tokens.resolve(ref)

    def amount(self, text: str, token: TokenId) -> Amount:
        if token in self.tokens:
            return self.tokens.get(token).parse(text)
        try:
            return int(text)
        except ValueError:
            raise ConfigError(f"amount for {token} must be an integer (no decimals known): {text!r}") from None

    def render(self, amount: Amount, token: TokenId) -> Any:
        if token in self.tokens:
            return {"raw": amount, "units": self.tokens.get(token).format(amount)}
        return amount

    def save(self) -> None:
        dump_snapshot(snapshot_from_ledger(self.ledger), self.snapshot_path)
        logger.info("wrote %s", self.snapshot_path)


def _cmd_quote(ctx: _Context, args: argparse.Namespace) -> Dict[str, Any]:
    path = [ctx.token(t) for t in args.path]
    amount_in = ctx.amount(args.amount_in, path[0])
    amounts = ctx.engine.get_amounts_out(amount_in, path)
    bps = args.slippage_bps if args.slippage_bps is not None else ctx.config.default_slippage_bps
    return {
        "path": path,
        "amounts": [ctx.render(a, t) for a, t in zip(amounts, path)],
        "min_out": min_amount_out(amounts[-1], bps),
    }


def _cmd_swap(ctx: _Context, args: argparse.Namespace) -> Dict[str, Any]:
    path = tuple(ctx.token(t) for t in args.path)
    amount_in = ctx.amount(args.amount_in, path[0])
    if args.min_out is not None:
        amount_out_min = ctx.amount(args.min_out, path[-1])
    else:
        bps = args.slippage_bps if args.slippage_bps is not None else ctx.config.default_slippage_bps
        amount_out_min = min_amount_out(ctx.engine.get_amounts_out(amount_in, path)[-1], bps)
    deadline = deadline_after(int(time.time()), args.deadline_seconds or ctx.config.deadline_seconds)

    if args.native_in:
        kind, native_value = SwapKind.EXACT_ETH_FOR_TOKENS, amount_in
    elif args.native_out:
        kind, native_value = SwapKind.EXACT_TOKENS_FOR_ETH, 0
    else:
        kind, native_value = SwapKind.EXACT_TOKENS_FOR_TOKENS, 0

    request = SwapRequest(amount_in, amount_out_min, path, args.to, deadline)
    run = ctx.engine.execute(request, sender=args.sender, kind=kind, native_value=native_value)
    if args.write:
        ctx.save()
    return {
        "phase": run.phase.value,
        "path": list(path),
        "amounts": [ctx.render(a, t) for a, t in zip(run.amounts, path)],
        "amount_out_min": amount_out_min,
        "pairs": list(run.pair_ids),
    }


def _cmd_add_liquidity(ctx: _Context, args: argparse.Namespace) -> Dict[str, Any]:
    token_a, token_b = ctx.token(args.token_a), ctx.token(args.token_b)
    deadline = deadline_after(int(time.time()), args.deadline_seconds or ctx.config.deadline_seconds)
    res = ctx.liquidity.add_liquidity(
        token_a,
        token_b,
        ctx.amount(args.amount_a, token_a),
        ctx.amount(args.amount_b, token_b),
        args.to,
        sender=args.sender,
        amount_a_min=ctx.amount(args.min_a, token_a) if args.min_a is not None else 0,
        amount_b_min=ctx.amount(args.min_b, token_b) if args.min_b is not None else 0,
        deadline=deadline,
    )
    if args.write:
        ctx.save()
    return {
        "pair_id": res.pair_id,
        "amount_a": ctx.render(res.amount_a, token_a),
        "amount_b": ctx.render(res.amount_b, token_b),
        "liquidity": res.liquidity,
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cpswap", description="Constant-product swap engine over a snapshot file")
    parser.add_argument("--config", default=None, help="YAML config with engine settings and a token list")
    parser.add_argument("--log-level", default=None, help="Logging level (default: CPSWAP_LOG_LEVEL or WARNING)")
    sub = parser.add_subparsers(dest="command", required=True)

    def common(p: argparse.ArgumentParser) -> None:
        p.add_argument("--snapshot", required=True, help="Ledger snapshot (.json or .yaml)")

    p_quote = sub.add_parser("quote", help="Quote an exact-in swap along a path")
    common(p_quote)
    p_quote.add_argument("--amount-in", required=True)
    p_quote.add_argument("--slippage-bps", type=int, default=None)
    p_quote.add_argument("path", nargs="+", help="Token path (ids or symbols)")
    p_quote.set_defaults(func=_cmd_quote)

    p_swap = sub.add_parser("swap", help="Execute an exact-in swap")
    common(p_swap)
    p_swap.add_argument("--sender", required=True)
    p_swap.add_argument("--to", required=True)
    p_swap.add_argument("--amount-in", required=True)
    bound = p_swap.add_mutually_exclusive_group()
    bound.add_argument("--min-out", default=None)
    bound.add_argument("--slippage-bps", type=int, default=None)
    native = p_swap.add_mutually_exclusive_group()
    native.add_argument("--native-in", action="store_true", help="Pay with native funds (path starts at the wrapped token)")
    native.add_argument("--native-out", action="store_true", help="Receive native funds (path ends at the wrapped token)")
    p_swap.add_argument("--deadline-seconds", type=int, default=None)
    p_swap.add_argument("--write", action="store_true", help="Write the resulting state back to --snapshot")
    p_swap.add_argument("path", nargs="+", help="Token path (ids or symbols)")
    p_swap.set_defaults(func=_cmd_swap)

    p_add = sub.add_parser("add-liquidity", help="Deposit two tokens into a pair")
    common(p_add)
    p_add.add_argument("--sender", required=True)
    p_add.add_argument("--to", required=True)
    p_add.add_argument("--min-a", default=None)
    p_add.add_argument("--min-b", default=None)
    p_add.add_argument("--deadline-seconds", type=int, default=None)
    p_add.add_argument("--write", action="store_true", help="Write the resulting state back to --snapshot")
    p_add.add_argument("token_a")
    p_add.add_argument("token_b")
    p_add.add_argument("amount_a")
    p_add.add_argument("amount_b")
    p_add.set_defaults(func=_cmd_add_liquidity)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        configure_logging(args.log_level)
        ctx = _Context(args)
        result = args.func(ctx, args)
    except AmmError as exc:
        run = exc.run
        err: Dict[str, Any] = {"error": type(exc).__name__, "message": str(exc)}
        if run is not None and run.failed_in is not None:
            err["phase"] = run.failed_in.value
        print(json.dumps(err, sort_keys=True), file=sys.stderr)
        return 2
    except (OSError, TypeError, ValueError) as exc:
        print(json.dumps({"error": type(exc).__name__, "message": str(exc)}, sort_keys=True), file=sys.stderr)
        return 1

    print(json.dumps(result, sort_keys=True))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
