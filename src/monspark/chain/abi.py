"""Minimal JSON ABIs for the GasManager, QuestHub and BridgeManager contracts."""

from __future__ import annotations

from typing import Any


def _param(name: str, type_: str, indexed: bool | None = None) -> dict[str, Any]:
    param: dict[str, Any] = {"name": name, "type": type_}
    if indexed is not None:
        param["indexed"] = indexed
    return param


def _fn(
    name: str,
    inputs: list[dict[str, Any]],
    outputs: list[dict[str, Any]],
    mutability: str = "view",
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


def _event(name: str, inputs: list[dict[str, Any]]) -> dict[str, Any]:
    return {"type": "event", "name": name, "inputs": inputs, "anonymous": False}


GAS_MANAGER_ABI: list[dict[str, Any]] = [
    _fn("allocateGas", [_param("user", "address")], [_param("", "bytes32")], "nonpayable"),
    _fn("revertGas", [_param("allocationId", "bytes32")], [], "nonpayable"),
    _fn("returnGas", [_param("allocationId", "bytes32")], [], "payable"),
    _fn("updateEligibility", [_param("user", "address"), _param("amount", "uint256")], [], "nonpayable"),
    _fn(
        "getAllocation",
        [_param("allocationId", "bytes32")],
        [
            _param("user", "address"),
            _param("amount", "uint256"),
            _param("timestamp", "uint256"),
            _param("isActive", "bool"),
        ],
    ),
    _fn("userEligibleAmount", [_param("user", "address")], [_param("", "uint256")]),
    _fn("poolBalance", [], [_param("", "uint256")]),
    _event("GasAllocated", [
        _param("allocationId", "bytes32", indexed=True),
        _param("user", "address", indexed=True),
        _param("amount", "uint256", indexed=False),
        _param("timestamp", "uint256", indexed=False),
    ]),
    _event("GasReverted", [
        _param("allocationId", "bytes32", indexed=True),
        _param("user", "address", indexed=True),
        _param("amount", "uint256", indexed=False),
        _param("successful", "bool", indexed=False),
    ]),
]

QUEST_HUB_ABI: list[dict[str, Any]] = [
    _fn("completeQuest", [_param("questId", "uint256")], [], "nonpayable"),
    _fn(
        "verifyAndCompleteQuest",
        [_param("user", "address"), _param("questId", "uint256")],
        [],
        "nonpayable",
    ),
    _fn(
        "getUserProgress",
        [_param("user", "address")],
        [
            _param("totalXP", "uint256"),
            _param("completedQuests", "uint256"),
            _param("level", "uint256"),
            _param("xpToNextLevel", "uint256"),
        ],
    ),
    _fn(
        "hasCompletedQuest",
        [_param("user", "address"), _param("questId", "uint256")],
        [_param("", "bool")],
    ),
    _fn(
        "getQuest",
        [_param("questId", "uint256")],
        [
            _param("name", "string"),
            _param("description", "string"),
            _param("xpReward", "uint256"),
            _param("gasReward", "uint256"),
            _param("isActive", "bool"),
            _param("completionCount", "uint256"),
        ],
    ),
    _fn("getTotalQuests", [], [_param("", "uint256")]),
    _event("QuestCompleted", [
        _param("user", "address", indexed=True),
        _param("questId", "uint256", indexed=True),
        _param("xpEarned", "uint256", indexed=False),
        _param("gasEligibilityEarned", "uint256", indexed=False),
    ]),
    _event("LevelUp", [
        _param("user", "address", indexed=True),
        _param("newLevel", "uint256", indexed=False),
        _param("totalXP", "uint256", indexed=False),
    ]),
]

BRIDGE_MANAGER_ABI: list[dict[str, Any]] = [
    _fn(
        "initiateBridge",
        [_param("targetChain", "string"), _param("targetToken", "string")],
        [_param("", "bytes32")],
        "payable",
    ),
    _fn("completeBridge", [_param("requestId", "bytes32")], [], "nonpayable"),
    _fn(
        "getBridgeRequest",
        [_param("requestId", "bytes32")],
        [
            _param("user", "address"),
            _param("amount", "uint256"),
            _param("targetChain", "string"),
            _param("targetToken", "string"),
            _param("timestamp", "uint256"),
            _param("isCompleted", "bool"),
        ],
    ),
    _fn(
        "calculateBridgeOutput",
        [_param("inputAmount", "uint256"), _param("targetToken", "string")],
        [_param("outputAmount", "uint256"), _param("fee", "uint256")],
    ),
    _event("BridgeInitiated", [
        _param("requestId", "bytes32", indexed=True),
        _param("user", "address", indexed=True),
        _param("amount", "uint256", indexed=False),
        _param("targetChain", "string", indexed=False),
        _param("targetToken", "string", indexed=False),
        _param("timestamp", "uint256", indexed=False),
    ]),
    _event("BridgeCompleted", [
        _param("requestId", "bytes32", indexed=True),
        _param("user", "address", indexed=True),
        _param("outputAmount", "uint256", indexed=False),
        _param("success", "bool", indexed=False),
    ]),
]
