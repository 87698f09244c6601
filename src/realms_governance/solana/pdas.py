from __future__ import annotations

from solders.pubkey import Pubkey

GOVERNANCE_SEED = b"governance"
REALM_CONFIG_SEED = b"realm-config"


def token_owner_record_address(
    program_id: Pubkey,
    realm: Pubkey,
    governing_token_mint: Pubkey,
    governing_token_owner: Pubkey,
) -> Pubkey:
    address, _ = Pubkey.find_program_address(
        [GOVERNANCE_SEED, bytes(realm), bytes(governing_token_mint), bytes(governing_token_owner)],
        program_id,
    )
    return address


def vote_record_address(program_id: Pubkey, proposal: Pubkey, token_owner_record: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address(
        [GOVERNANCE_SEED, bytes(proposal), bytes(token_owner_record)],
        program_id,
    )
    return address


def realm_config_address(program_id: Pubkey, realm: Pubkey) -> Pubkey:
    address, _ = Pubkey.find_program_address([REALM_CONFIG_SEED, bytes(realm)], program_id)
    return address
