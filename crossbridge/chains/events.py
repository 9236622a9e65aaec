"""
Bridge Contract ABI Subset

Calldata encoding for the two bridge entry points and decoding of the
BridgeInitiated event emitted when a hop is accepted by a bridge contract.
Only the fields needed to recover bridge completion data are modeled.

Event:
    BridgeInitiated(address indexed sender, address indexed recipient,
                    address token, uint256 amount, uint32 targetChain)
"""

from collections.abc import Iterable
from typing import Any

from eth_abi import decode, encode
from eth_abi.exceptions import DecodingError
from pydantic import BaseModel
from web3 import Web3

from ..exceptions import DecodeError
from ..models import LogEntry, TransactionReceipt

# Bridge contract ABI (subset for bridging and event recovery)
BRIDGE_ABI: list[dict[str, Any]] = [
    {
        "inputs": [
            {"name": "token", "type": "address"},
            {"name": "amount", "type": "uint256"},
            {"name": "recipient", "type": "address"},
            {"name": "targetChain", "type": "uint32"},
        ],
        "name": "bridgeToken",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "inputs": [
            {"name": "recipient", "type": "address"},
            {"name": "targetChain", "type": "uint32"},
        ],
        "name": "bridgeETH",
        "outputs": [],
        "stateMutability": "payable",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [
            {"indexed": True, "name": "sender", "type": "address"},
            {"indexed": True, "name": "recipient", "type": "address"},
            {"indexed": False, "name": "token", "type": "address"},
            {"indexed": False, "name": "amount", "type": "uint256"},
            {"indexed": False, "name": "targetChain", "type": "uint32"},
        ],
        "name": "BridgeInitiated",
        "type": "event",
    },
]

BRIDGE_TOKEN_SIGNATURE = "bridgeToken(address,uint256,address,uint32)"
BRIDGE_ETH_SIGNATURE = "bridgeETH(address,uint32)"
BRIDGE_INITIATED_SIGNATURE = "BridgeInitiated(address,address,address,uint256,uint32)"

BRIDGE_INITIATED_TOPIC: str = Web3.to_hex(Web3.keccak(text=BRIDGE_INITIATED_SIGNATURE))

_EVENT_DATA_TYPES = ["address", "uint256", "uint32"]


class BridgeEvent(BaseModel):
    """Decoded BridgeInitiated event."""

    contract: str
    sender: str
    recipient: str
    token: str
    amount: int
    target_chain: int
    block_number: int
    log_index: int
    transaction_hash: str

    model_config = {"frozen": True}


def function_selector(signature: str) -> bytes:
    """First four bytes of the keccak hash of a function signature."""
    return bytes(Web3.keccak(text=signature)[:4])


def encode_bridge_token(token: str, amount: int, recipient: str, target_chain: int) -> bytes:
    """Calldata for bridgeToken(token, amount, recipient, targetChain)."""
    return function_selector(BRIDGE_TOKEN_SIGNATURE) + encode(
        ["address", "uint256", "address", "uint32"],
        [
            Web3.to_checksum_address(token),
            amount,
            Web3.to_checksum_address(recipient),
            target_chain,
        ],
    )


def encode_bridge_eth(recipient: str, target_chain: int) -> bytes:
    """Calldata for bridgeETH(recipient, targetChain)."""
    return function_selector(BRIDGE_ETH_SIGNATURE) + encode(
        ["address", "uint32"],
        [Web3.to_checksum_address(recipient), target_chain],
    )


def address_topic(address: str) -> str:
    """Left-pad an address to a 32-byte indexed topic."""
    return "0x" + address.lower().removeprefix("0x").rjust(64, "0")


def _topic_address(topic: str) -> str:
    return Web3.to_checksum_address("0x" + topic[-40:])


def decode_bridge_event(log: LogEntry) -> BridgeEvent:
    """
    Decode a BridgeInitiated log.

    Raises:
        DecodeError: If the log is not a BridgeInitiated event or is malformed
    """
    if len(log.topics) < 3 or log.topics[0].lower() != BRIDGE_INITIATED_TOPIC.lower():
        raise DecodeError("Log is not a BridgeInitiated event")

    try:
        token, amount, target_chain = decode(_EVENT_DATA_TYPES, Web3.to_bytes(hexstr=log.data))
        return BridgeEvent(
            contract=log.address,
            sender=_topic_address(log.topics[1]),
            recipient=_topic_address(log.topics[2]),
            token=Web3.to_checksum_address(token),
            amount=amount,
            target_chain=target_chain,
            block_number=log.block_number,
            log_index=log.log_index,
            transaction_hash=log.transaction_hash,
        )
    except (DecodingError, ValueError, TypeError) as e:
        raise DecodeError(f"Malformed BridgeInitiated event: {e}") from e


def find_bridge_event(
    receipt: TransactionReceipt,
    contracts: Iterable[str],
) -> BridgeEvent | None:
    """
    First decodable BridgeInitiated event emitted by one of the given bridge
    contracts, if any.

    Logs from any other address are ignored: a token contract touched by the
    same transaction can emit an event with the same topic.
    """
    trusted = {address.lower() for address in contracts}
    for log in receipt.logs:
        if log.address.lower() not in trusted:
            continue
        try:
            return decode_bridge_event(log)
        except DecodeError:
            continue
    return None
