import pytest
from solders.pubkey import Pubkey

from elowen_client.core.exceptions import ClassificationAmbiguous, DetailNotFound
from elowen_client.services.matcher import InnerInstructionMatcher, MatchRule, system_transfer, token_instruction
from elowen_client.services.parsed_tx import ParsedInstruction
from factories import system_transfer_ix, token_ix


def parse(*instructions: dict) -> list[ParsedInstruction]:
    return [ParsedInstruction.from_json(ix) for ix in instructions]


def test_roles_are_assigned_by_predicate_not_position():
    mint, authority = Pubkey.new_unique(), Pubkey.new_unique()
    instructions = parse(
        token_ix("transferChecked", 2, mint=mint, authority=authority),
        token_ix("transferChecked", 1, mint=mint, authority=Pubkey.new_unique()),
    )
    matcher = InnerInstructionMatcher([
        MatchRule("payout", token_instruction("transferChecked", authority=authority)),
        MatchRule("payin", token_instruction("transferChecked", not_authority=authority)),
    ])

    roles = matcher.match(instructions)

    assert roles["payout"].raw_amount == 2
    assert roles["payin"].raw_amount == 1


def test_missing_required_role():
    matcher = InnerInstructionMatcher([MatchRule("burn", token_instruction("burn"))])
    with pytest.raises(DetailNotFound):
        matcher.match(parse(token_ix("transfer", 1)))


def test_optional_role_may_be_absent():
    matcher = InnerInstructionMatcher([MatchRule("burn", token_instruction("burn"), required=False)])
    assert matcher.match(parse(token_ix("transfer", 1))) == {}


def test_ambiguity_keeps_first_unless_strict():
    instructions = parse(token_ix("transfer", 1), token_ix("transfer", 2))
    rules = [MatchRule("transfer", token_instruction("transfer"))]

    assert InnerInstructionMatcher(rules).match(instructions)["transfer"].raw_amount == 1
    with pytest.raises(ClassificationAmbiguous):
        InnerInstructionMatcher(rules, strict=True).match(instructions)


def test_system_transfer_by_destination():
    destination = Pubkey.new_unique()
    instructions = parse(system_transfer_ix(Pubkey.new_unique(), 5), system_transfer_ix(destination, 7))

    roles = InnerInstructionMatcher([MatchRule("fee", system_transfer(destination=destination))]).match(instructions)

    assert roles["fee"].raw_amount == 7


def test_token_predicate_ignores_system_program():
    predicate = token_instruction("transfer")
    assert not predicate(ParsedInstruction.from_json(system_transfer_ix(Pubkey.new_unique(), 1)))
