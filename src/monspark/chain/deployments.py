"""Contract address resolution from the deployment descriptor and settings."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

import structlog

from monspark.config import Settings
from monspark.errors import ChainConfigurationError

logger = structlog.get_logger()


@dataclass(frozen=True)
class ContractAddresses:
    gas_manager: str
    quest_hub: str
    bridge_manager: str


def load_deployment_file(path: str | Path) -> dict[str, str]:
    """Read the ``contracts`` mapping of a deployment descriptor. Missing file -> {}."""
    file_path = Path(path)
    if not file_path.exists():
        logger.warning("deployment_file_missing", path=str(file_path))
        return {}
    try:
        data = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        msg = f"Unreadable deployment file {file_path}: {e}"
        raise ChainConfigurationError(msg) from e
    contracts = data.get("contracts", {}) if isinstance(data, dict) else {}
    return {name: addr for name, addr in contracts.items() if isinstance(addr, str)}


def resolve_contract_addresses(settings: Settings) -> ContractAddresses:
    """Deployment file first, each address individually overridable by settings.

    Raises:
        ChainConfigurationError: If any of the three addresses is unresolved.
    """
    deployed = load_deployment_file(settings.deployment_file)
    resolved = {
        "GasManager": settings.gas_manager_address or deployed.get("GasManager"),
        "QuestHub": settings.quest_hub_address or deployed.get("QuestHub"),
        "BridgeManager": settings.bridge_manager_address or deployed.get("BridgeManager"),
    }
    missing = sorted(name for name, addr in resolved.items() if not addr)
    if missing:
        msg = f"Contract address not configured: {', '.join(missing)}"
        raise ChainConfigurationError(msg)

    return ContractAddresses(
        gas_manager=resolved["GasManager"],  # type: ignore[arg-type]
        quest_hub=resolved["QuestHub"],  # type: ignore[arg-type]
        bridge_manager=resolved["BridgeManager"],  # type: ignore[arg-type]
    )
