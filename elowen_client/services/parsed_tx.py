from dataclasses import dataclass, field
from typing import Any, Optional

from solders.pubkey import Pubkey


def _pubkey(value: Any) -> Optional[Pubkey]:
    if value is None:
        return None
    if isinstance(value, Pubkey):
        return value
    return Pubkey.from_string(str(value))


@dataclass(frozen=True)
class ParsedInstruction:
    """
    One instruction of a jsonParsed transaction.

    Instructions of programs the RPC knows (spl-token, system, ...) come with
    `program` and a `{type, info}` body; everything else keeps its base58 data.
    """
    program_id: Pubkey
    program: Optional[str] = None
    parsed_type: Optional[str] = None
    info: dict = field(default_factory=dict)
    data: Optional[str] = None
    accounts: tuple[Pubkey, ...] = ()

    @classmethod
    def from_json(cls, d: dict) -> "ParsedInstruction":
        parsed = d.get("parsed")
        parsed_type, info = None, {}
        if isinstance(parsed, dict):
            parsed_type = parsed.get("type")
            info = parsed.get("info") or {}
        return cls(
            program_id=_pubkey(d["programId"]),
            program=d.get("program"),
            parsed_type=parsed_type,
            info=info,
            data=d.get("data"),
            accounts=tuple(_pubkey(a) for a in d.get("accounts") or ()),
        )

    def info_pubkey(self, key: str) -> Optional[Pubkey]:
        return _pubkey(self.info.get(key))

    @property
    def authority(self) -> Optional[Pubkey]:
        authority = self.info_pubkey("authority")
        return authority if authority is not None else self.info_pubkey("multisigAuthority")

    @property
    def raw_amount(self) -> int:
        """Integer amount moved: tokenAmount.amount, amount or lamports."""
        token_amount = self.info.get("tokenAmount")
        if isinstance(token_amount, dict):
            return int(token_amount["amount"])
        if "amount" in self.info:
            return int(self.info["amount"])
        if "lamports" in self.info:
            return int(self.info["lamports"])
        raise KeyError(f"{self.parsed_type} instruction carries no amount")


@dataclass(frozen=True)
class AccountKey:
    pubkey: Pubkey
    signer: bool = False
    writable: bool = False

    @classmethod
    def from_json(cls, d: Any) -> "AccountKey":
        if isinstance(d, str):
            return cls(pubkey=_pubkey(d))
        return cls(pubkey=_pubkey(d["pubkey"]), signer=bool(d.get("signer")), writable=bool(d.get("writable")))


@dataclass(frozen=True)
class TokenBalance:
    account_index: int
    mint: Pubkey
    owner: Optional[Pubkey]
    amount: int
    decimals: int

    @classmethod
    def from_json(cls, d: dict) -> "TokenBalance":
        ui_amount = d.get("uiTokenAmount") or {}
        return cls(
            account_index=int(d.get("accountIndex", 0)),
            mint=_pubkey(d["mint"]),
            owner=_pubkey(d.get("owner")),
            amount=int(ui_amount.get("amount", 0)),
            decimals=int(ui_amount.get("decimals", 0)),
        )


@dataclass(frozen=True)
class ParsedTransaction:
    signatures: tuple[str, ...]
    account_keys: tuple[AccountKey, ...]
    instructions: tuple[ParsedInstruction, ...]
    inner_instructions: dict[int, tuple[ParsedInstruction, ...]]
    post_token_balances: tuple[TokenBalance, ...]
    fee: int = 0
    block_time: Optional[int] = None

    @classmethod
    def from_json(cls, d: dict) -> "ParsedTransaction":
        """Builds a transaction from a `getTransaction(..., encoding="jsonParsed")` result."""
        if "meta" not in d and isinstance(d.get("transaction"), dict) and "meta" in d["transaction"]:
            d = {**d["transaction"], "blockTime": d.get("blockTime")}
        transaction = d["transaction"]
        message = transaction["message"]
        meta = d.get("meta") or {}
        return cls(
            signatures=tuple(transaction.get("signatures") or ()),
            account_keys=tuple(AccountKey.from_json(k) for k in message.get("accountKeys") or ()),
            instructions=tuple(ParsedInstruction.from_json(ix) for ix in message.get("instructions") or ()),
            inner_instructions={
                int(group["index"]): tuple(ParsedInstruction.from_json(ix) for ix in group.get("instructions") or ())
                for group in meta.get("innerInstructions") or ()
            },
            post_token_balances=tuple(TokenBalance.from_json(b) for b in meta.get("postTokenBalances") or ()),
            fee=int(meta.get("fee") or 0),
            block_time=d.get("blockTime"),
        )

    @property
    def signature(self) -> str:
        return self.signatures[0] if self.signatures else ""

    @property
    def first_signer(self) -> Optional[Pubkey]:
        for key in self.account_keys:
            if key.signer:
                return key.pubkey
        return None

    def inner_instructions_for(self, index: Optional[int] = None) -> tuple[ParsedInstruction, ...]:
        """
        Inner instructions produced by the top-level instruction at `index`. Without
        a group for that position, the first group recorded in `meta` is used.
        """
        if index is not None and index in self.inner_instructions:
            return self.inner_instructions[index]
        return next(iter(self.inner_instructions.values()), ())
