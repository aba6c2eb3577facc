"""
Artifact Loader
Reads compiled contract artifacts (ABI + bytecode) produced by Foundry or Hardhat
"""

import json
import os
import string
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from loguru import logger

from utils.exceptions import ArtifactMalformedError, ArtifactNotFoundError


# Build output directories searched when no explicit artifact path is given
FOUNDRY_OUT_DIR = "out"
HARDHAT_ARTIFACTS_DIR = "artifacts/contracts"
DEFAULT_SEARCH_DIRS = (FOUNDRY_OUT_DIR, HARDHAT_ARTIFACTS_DIR)

HEX_DIGITS = frozenset(string.hexdigits)


@dataclass(frozen=True)
class DeployableArtifact:
    """Interface definition and executable payload of one compiled contract"""

    contract_name: str
    abi: Tuple[Dict, ...]
    bytecode: str
    source_path: str

    @property
    def constructor_inputs(self) -> List[Dict]:
        """ABI inputs of the constructor (empty if the contract declares none)"""
        for entry in self.abi:
            if entry.get('type') == 'constructor':
                return list(entry.get('inputs', []))
        return []

    @property
    def bytecode_size(self) -> int:
        """Payload size in bytes"""
        return (len(self.bytecode) - 2) // 2


def resolve_artifact_path(
    contract_name: str,
    search_dirs: Sequence[str] = DEFAULT_SEARCH_DIRS
) -> str:
    """
    Locate the artifact for a contract in the usual build output layouts

    Args:
        contract_name: Contract name, e.g. 'Router'
        search_dirs: Build output directories to look in

    Returns:
        Path of the first existing `<dir>/<Name>.sol/<Name>.json`
    """
    candidates = [
        os.path.join(directory, f"{contract_name}.sol", f"{contract_name}.json")
        for directory in search_dirs
    ]

    for candidate in candidates:
        if os.path.exists(candidate):
            logger.debug(f"Resolved artifact for {contract_name}: {candidate}")
            return candidate

    raise ArtifactNotFoundError(
        f"No artifact for {contract_name} (looked in: {', '.join(candidates)}). "
        f"Compile the contracts first"
    )


def load_artifact(path: str, contract_name: Optional[str] = None) -> DeployableArtifact:
    """
    Load a compiled contract artifact

    Args:
        path: Artifact JSON file
        contract_name: Name to report (defaults to the file stem)

    Returns:
        DeployableArtifact
    """
    if not os.path.isfile(path):
        raise ArtifactNotFoundError(f"Contract artifact not found: {path}")

    try:
        with open(path, 'r', encoding='utf-8') as f:
            contract_json = json.load(f)
    except json.JSONDecodeError as e:
        raise ArtifactMalformedError(f"Artifact {path} is not valid JSON: {e}") from e
    except UnicodeDecodeError as e:
        raise ArtifactMalformedError(f"Artifact {path} is not a text file") from e

    if not isinstance(contract_json, dict):
        raise ArtifactMalformedError(f"Artifact {path} must be a JSON object")

    abi = contract_json.get('abi')
    if not isinstance(abi, list) or not all(isinstance(entry, dict) for entry in abi):
        raise ArtifactMalformedError(f"Artifact {path} has no valid 'abi' list")

    bytecode = _normalize_bytecode(contract_json.get('bytecode'), path)

    if contract_name is None:
        contract_name = contract_json.get('contractName') or _name_from_path(path)

    artifact = DeployableArtifact(
        contract_name=contract_name,
        abi=tuple(abi),
        bytecode=bytecode,
        source_path=path
    )

    logger.info(
        f"Loaded {artifact.contract_name} artifact: {len(artifact.abi)} ABI entries, "
        f"{artifact.bytecode_size} bytes of bytecode"
    )
    return artifact


def _normalize_bytecode(raw, path: str) -> str:
    """Accept Hardhat (plain string) and Foundry ({'object': ...}) bytecode"""
    if isinstance(raw, dict):
        raw = raw.get('object')

    if not isinstance(raw, str):
        raise ArtifactMalformedError(f"Artifact {path} has no 'bytecode'")

    bytecode = raw.strip()
    if bytecode[:2].lower() == '0x':
        bytecode = bytecode[2:]

    if not bytecode:
        raise ArtifactMalformedError(
            f"Artifact {path} has empty bytecode (abstract contract or interface?)"
        )

    if '__' in bytecode:
        raise ArtifactMalformedError(f"Artifact {path} has unlinked library references")

    if len(bytecode) % 2:
        raise ArtifactMalformedError(f"Artifact {path} bytecode has an odd number of hex digits")

    if not set(bytecode) <= HEX_DIGITS:
        raise ArtifactMalformedError(f"Artifact {path} bytecode is not hex")

    return '0x' + bytecode.lower()


def _name_from_path(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]
