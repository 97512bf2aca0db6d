from __future__ import annotations

import logging
import re
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from eth_abi import decode as abi_decode
from eth_abi import encode as abi_encode
from eth_abi.exceptions import DecodingError
from eth_account import Account
from eth_utils import keccak, to_checksum_address

from .challenges import get_challenge
from .config import Settings
from .errors import (
    ConfigurationError,
    NetworkError,
    RelayTimeout,
    RpcError,
    SimulationRevert,
    SubmissionError,
    ValidationError,
    classify_send_failure,
)
from .labels import Encodings, encode, normalize
from .project_constants import (
    GAS_MULTIPLIER,
    MIN_GAS_LIMIT,
    PREFLIGHT_RETRY_DELAY_S,
    RECEIPT_POLL_S,
    RECEIPT_TIMEOUT_S,
)

log = logging.getLogger("relay")

ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
WEI_PER_ETH = Decimal(10) ** 18


def is_address(value: Any) -> bool:
    return isinstance(value, str) and bool(ADDRESS_RE.match(value))


def selector(signature: str) -> bytes:
    return keccak(text=signature)[:4]


@dataclass(frozen=True)
class CallDescriptor:
    """One concrete shape of a contract call we are willing to try."""

    label: str
    function: str
    abi_types: Tuple[str, ...]
    args: Tuple[Any, ...]

    @property
    def signature(self) -> str:
        return f"{self.function}({','.join(self.abi_types)})"

    @property
    def calldata(self) -> str:
        body = abi_encode(list(self.abi_types), list(self.args))
        return "0x" + (selector(self.signature) + body).hex()

    def describe(self) -> Dict[str, Any]:
        return {"label": self.label, "signature": self.signature}


@dataclass(frozen=True)
class AwardRequest:
    player_address: str
    win_types: Tuple[str, ...]
    game_id: Optional[int] = None


@dataclass(frozen=True)
class Submission:
    transaction_hash: str
    block_number: int
    gas_used: int
    gas_limit: int


@dataclass
class Preflight:
    selected: Optional[CallDescriptor] = None
    attempted: List[str] = field(default_factory=list)
    last_error: Optional[str] = None
    passes: int = 0


def candidate_calls(
    player: str, encodings: Encodings, game_id: Optional[int] = None
) -> List[CallDescriptor]:
    """
    Ordered awardWins(...) shapes, 2-argument forms first.
    Deployments of the game contract have taken string[], bytes32[] and
    uint8[] win types, with and without a trailing gameId.
    """
    player = to_checksum_address(player)
    shapes: List[Tuple[str, str, Tuple[Any, ...]]] = [
        ("string[]", "string", encodings.strings),
        ("bytes32[]", "hash", encodings.hashes),
    ]
    if encodings.indices is not None:
        shapes.append(("uint8[]", "index", encodings.indices))

    out = [
        CallDescriptor(
            label=f"{name}/2",
            function="awardWins",
            abi_types=("address", abi_type),
            args=(player, list(values)),
        )
        for abi_type, name, values in shapes
    ]
    if game_id is not None:
        out += [
            CallDescriptor(
                label=f"{name}/3",
                function="awardWins",
                abi_types=("address", abi_type, "uint256"),
                args=(player, list(values), int(game_id)),
            )
            for abi_type, name, values in shapes
        ]
    return out


def _preflight_pass(
    chain: Any, contract: str, sender: str, candidates: Sequence[CallDescriptor], state: Preflight
) -> Optional[CallDescriptor]:
    for cand in candidates:
        state.attempted.append(cand.label)
        try:
            chain.call(contract, cand.calldata, sender=sender)
        except RpcError as e:
            if not e.is_revert:
                raise NetworkError(
                    f"Node error during preflight: {e.rpc_message}",
                    rpc_code=e.code,
                    variant=cand.signature,
                )
            log.debug("Preflight %s reverted: %s", cand.signature, e.rpc_message)
            state.last_error = e.rpc_message or str(e)
            continue
        log.debug("Preflight %s ok", cand.signature)
        return cand
    return None


def read_owner(chain: Any, contract: str) -> Optional[str]:
    try:
        raw = chain.call(contract, "0x" + selector("owner()").hex())
        (owner,) = abi_decode(["address"], bytes.fromhex(raw[2:]))
        return to_checksum_address(owner)
    except (RpcError, NetworkError, DecodingError, ValueError, TypeError):
        return None


def read_oracle_flag(chain: Any, contract: str, address: str) -> Optional[bool]:
    arg = abi_encode(["address"], [to_checksum_address(address)])
    for sig in ("oracles(address)", "isOracle(address)"):
        try:
            raw = chain.call(contract, "0x" + (selector(sig) + arg).hex())
            (flag,) = abi_decode(["bool"], bytes.fromhex(raw[2:]))
            return bool(flag)
        except (RpcError, NetworkError, DecodingError, ValueError, TypeError):
            continue
    return None


def select_call_variant(
    chain: Any,
    contract: str,
    sender: str,
    candidates: Sequence[CallDescriptor],
    retry_delay_s: float = PREFLIGHT_RETRY_DELAY_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Preflight:
    """
    Simulate each candidate with eth_call and return the first that does not
    revert. One more pass runs after ``retry_delay_s`` so a just-mined
    prerequisite (join(), oracle grant) can land. Raises SimulationRevert
    when nothing passes; no transaction is sent in that case.
    """
    if not candidates:
        raise ValidationError("No call variants to try")

    state = Preflight()
    for attempt in range(2):
        if attempt:
            log.info(
                "No variant passed preflight; retrying in %.1fs", retry_delay_s
            )
            sleep(retry_delay_s)
        state.passes += 1
        chosen = _preflight_pass(chain, contract, sender, candidates, state)
        if chosen is not None:
            state.selected = chosen
            log.info("Selected %s (%s)", chosen.signature, chosen.label)
            return state

    owner = read_owner(chain, contract)
    raise SimulationRevert(
        "All call variants would revert",
        last_error=state.last_error,
        attempted=state.attempted,
        signer=sender,
        owner=owner,
        signer_is_owner=(owner.lower() == sender.lower()) if owner else None,
        oracle_authorized=read_oracle_flag(chain, contract, sender),
    )


def _fee_fields(chain: Any) -> Dict[str, int]:
    base_fee = chain.base_fee()
    if base_fee is None:
        return {"gasPrice": chain.gas_price()}
    try:
        tip = chain.max_priority_fee()
    except RpcError:
        tip = 1_000_000
    return {"maxFeePerGas": 2 * base_fee + tip, "maxPriorityFeePerGas": tip}


def wait_for_receipt(
    chain: Any,
    tx_hash: str,
    timeout_s: float = RECEIPT_TIMEOUT_S,
    poll_s: float = RECEIPT_POLL_S,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> Dict[str, Any]:
    deadline = clock() + timeout_s
    while True:
        receipt = chain.get_transaction_receipt(tx_hash)
        if receipt is not None:
            return receipt
        if clock() >= deadline:
            raise RelayTimeout(
                f"Transaction {tx_hash} not confirmed within {timeout_s:.0f}s",
                transactionHash=tx_hash,
            )
        sleep(poll_s)


def submit(
    chain: Any,
    account: Any,
    contract: str,
    variant: CallDescriptor,
    chain_id: int,
    receipt_timeout_s: float = RECEIPT_TIMEOUT_S,
    sleep: Callable[[float], None] = time.sleep,
) -> Submission:
    """Estimate, sign, send and wait for one confirmation. Never retried."""
    data = variant.calldata
    try:
        estimate = chain.estimate_gas(contract, data, account.address)
    except RpcError as e:
        raise SubmissionError(
            f"Gas estimation failed: {e.rpc_message}",
            variant=variant.signature,
            rpc_code=e.code,
        )
    gas_limit = max(estimate * GAS_MULTIPLIER, MIN_GAS_LIMIT)

    tx: Dict[str, Any] = {
        "to": to_checksum_address(contract),
        "data": data,
        "value": 0,
        "gas": gas_limit,
        "nonce": chain.get_transaction_count(account.address),
        "chainId": chain_id,
    }
    tx.update(_fee_fields(chain))

    signed = account.sign_transaction(tx)
    raw = "0x" + bytes(signed.raw_transaction).hex()
    try:
        tx_hash = chain.send_raw_transaction(raw)
    except RpcError as e:
        raise classify_send_failure(e)
    log.info("Transaction submitted: %s (gas limit %d)", tx_hash, gas_limit)

    receipt = wait_for_receipt(chain, tx_hash, timeout_s=receipt_timeout_s, sleep=sleep)
    if receipt["status"] != 1:
        raise SubmissionError(
            "Transaction reverted on-chain",
            transactionHash=tx_hash,
            blockNumber=receipt["blockNumber"],
        )
    log.info("Transaction confirmed in block %d", receipt["blockNumber"])
    return Submission(
        transaction_hash=receipt["transactionHash"],
        block_number=receipt["blockNumber"],
        gas_used=receipt["gasUsed"],
        gas_limit=gas_limit,
    )


class RewardRelay:
    """Gets $BINGO to a winner's wallet through the game contract.

    ``chain`` is an RpcClient or anything with the same eth_* methods.
    """

    def __init__(
        self,
        settings: Settings,
        chain: Any,
        retry_delay_s: float = PREFLIGHT_RETRY_DELAY_S,
        receipt_timeout_s: float = RECEIPT_TIMEOUT_S,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.settings = settings
        self.chain = chain
        self.retry_delay_s = retry_delay_s
        self.receipt_timeout_s = receipt_timeout_s
        self.sleep = sleep
        self._account = None

    @property
    def account(self):
        if not self.settings.owner_private_key:
            raise ConfigurationError(
                "Server configuration error: missing owner key (OWNER_PRIVATE_KEY)"
            )
        if self._account is None:
            try:
                self._account = Account.from_key(self.settings.owner_private_key)
            except ValueError:
                raise ConfigurationError("OWNER_PRIVATE_KEY is not a valid private key")
        return self._account

    def build_request(
        self, address: Any, win_types: Any, game_id: Any = None
    ) -> AwardRequest:
        if not is_address(address):
            raise ValidationError("Invalid wallet address format", address=address)
        if not isinstance(win_types, (list, tuple)) or not win_types:
            raise ValidationError("winTypes must be a non-empty array")
        if not all(isinstance(w, str) and w.strip() for w in win_types):
            raise ValidationError("winTypes entries must be non-empty strings")
        if game_id is not None:
            if isinstance(game_id, bool) or not isinstance(game_id, int) or game_id < 0:
                raise ValidationError("gameId must be a non-negative integer")
        return AwardRequest(
            player_address=address, win_types=tuple(win_types), game_id=game_id
        )

    def _run(
        self, candidates: List[CallDescriptor], dry_run: bool
    ) -> Tuple[Preflight, Optional[Submission]]:
        account = self.account
        contract = self.settings.game_address
        preflight = select_call_variant(
            self.chain,
            contract,
            account.address,
            candidates,
            retry_delay_s=self.retry_delay_s,
            sleep=self.sleep,
        )
        if dry_run:
            return preflight, None
        submission = submit(
            self.chain,
            account,
            contract,
            preflight.selected,
            chain_id=self.chain.chain_id(),
            receipt_timeout_s=self.receipt_timeout_s,
            sleep=self.sleep,
        )
        return preflight, submission

    def award(self, request: AwardRequest, dry_run: bool = False) -> Dict[str, Any]:
        # Local checks happen before the first RPC.
        _ = self.account
        labels = normalize(request.win_types)
        candidates = candidate_calls(
            request.player_address, encode(labels), request.game_id
        )
        log.info(
            "Awarding %s to %s (game %s)",
            " + ".join(labels),
            request.player_address,
            request.game_id,
        )

        preflight, submission = self._run(candidates, dry_run)
        variant = preflight.selected
        result: Dict[str, Any] = {
            "success": True,
            "address": request.player_address,
            "winTypes": labels,
            "variant": variant.describe(),
            "attempted": preflight.attempted,
        }
        if submission is None:
            result.update(dryRun=True, message=f"Would call {variant.signature}")
            return result

        result.update(
            message=f"Rewards sent: {' + '.join(labels)}",
            transactionHash=submission.transaction_hash,
            blockNumber=submission.block_number,
            gasUsed=submission.gas_used,
        )
        log.info(
            "Awarded %s to %s in %s",
            " + ".join(labels),
            request.player_address,
            submission.transaction_hash,
        )
        return result

    def award_weekly(
        self, player: Any, challenge_id: Any, week_key: Any, amount_wei: Any
    ) -> Dict[str, Any]:
        if not is_address(player):
            raise ValidationError("Invalid player address")
        if not challenge_id or not isinstance(challenge_id, str):
            raise ValidationError("Missing challengeId")
        challenge = get_challenge(challenge_id)
        if challenge is None:
            raise ValidationError(f"Unknown challengeId: {challenge_id}")
        if amount_wei is None:
            amount_wei = challenge.reward_bingo * 10**18
        try:
            week = int(week_key)
            amount = int(amount_wei)
        except (TypeError, ValueError):
            raise ValidationError("weekKey and amount must be integers")
        if week <= 0:
            raise ValidationError("Invalid weekKey")
        if amount < 0:
            raise ValidationError("amount must be non-negative")

        _ = self.account
        call = CallDescriptor(
            label="weekly",
            function="awardWeeklyChallenge",
            abi_types=("address", "bytes32", "uint256", "uint256"),
            args=(to_checksum_address(player), keccak(text=challenge_id), week, amount),
        )
        _, submission = self._run([call], dry_run=False)
        return {
            "success": True,
            "transactionHash": submission.transaction_hash,
            "blockNumber": submission.block_number,
        }

    def health(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "status": "ok",
            "hasSigner": self.settings.has_signer,
            "gameAddress": self.settings.game_address,
        }
        if not self.settings.has_signer:
            out["status"] = "misconfigured"
            return out
        account = self.account
        balance = self.chain.get_balance(account.address)
        out.update(
            signer=account.address,
            balanceWei=str(balance),
            balanceEth=str(Decimal(balance) / WEI_PER_ETH),
            chainId=self.chain.chain_id(),
        )
        return out
