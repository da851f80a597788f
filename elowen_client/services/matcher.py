from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Sequence

from solders.pubkey import Pubkey

from ..core.constants import SPL_TOKEN_PROGRAM_NAME, SYSTEM_PROGRAM_NAME
from ..core.exceptions import ClassificationAmbiguous, DetailNotFound
from ..core.logger import logger
from .parsed_tx import ParsedInstruction

Predicate = Callable[[ParsedInstruction], bool]


def _equals(actual: Optional[Pubkey], expected: Optional[Pubkey]) -> bool:
    return expected is None or actual == expected


def _differs(actual: Optional[Pubkey], excluded: Optional[Pubkey]) -> bool:
    return excluded is None or (actual is not None and actual != excluded)


def token_instruction(
    parsed_type: str,
    *,
    mint: Optional[Pubkey] = None,
    not_mint: Optional[Pubkey] = None,
    authority: Optional[Pubkey] = None,
    not_authority: Optional[Pubkey] = None,
    destination: Optional[Pubkey] = None,
) -> Predicate:
    """spl-token instruction of `parsed_type`, optionally pinned by mint / authority / destination."""
    def predicate(ix: ParsedInstruction) -> bool:
        if ix.program != SPL_TOKEN_PROGRAM_NAME or ix.parsed_type != parsed_type:
            return False
        return (
            _equals(ix.info_pubkey("mint"), mint)
            and _differs(ix.info_pubkey("mint"), not_mint)
            and _equals(ix.authority, authority)
            and _differs(ix.authority, not_authority)
            and _equals(ix.info_pubkey("destination"), destination)
        )
    return predicate


def system_transfer(*, destination: Optional[Pubkey] = None) -> Predicate:
    def predicate(ix: ParsedInstruction) -> bool:
        return (
            ix.program == SYSTEM_PROGRAM_NAME
            and ix.parsed_type == "transfer"
            and _equals(ix.info_pubkey("destination"), destination)
        )
    return predicate


@dataclass(frozen=True)
class MatchRule:
    role: str
    predicate: Predicate
    required: bool = True


class InnerInstructionMatcher:
    """
    Assigns inner instructions to roles ("input", "output", "burn", ...).

    Every rule is checked against the whole list, so the result never depends
    on the order in which the runtime recorded the inner instructions.
    """

    def __init__(self, rules: Iterable[MatchRule], strict: bool = False):
        self.rules = tuple(rules)
        self.strict = strict

    def match(self, instructions: Sequence[ParsedInstruction], signature: str = "") -> dict[str, ParsedInstruction]:
        roles: dict[str, ParsedInstruction] = {}
        for rule in self.rules:
            candidates = [ix for ix in instructions if rule.predicate(ix)]
            if not candidates:
                if rule.required:
                    raise DetailNotFound(f"No inner instruction matches role '{rule.role}'")
                continue
            if len(candidates) > 1:
                ambiguity = ClassificationAmbiguous(
                    f"{len(candidates)} inner instructions match role '{rule.role}'"
                )
                if self.strict:
                    raise ambiguity
                logger.warning("ambiguous inner instruction match", signature=signature, error=str(ambiguity))
            roles[rule.role] = candidates[0]
        return roles
