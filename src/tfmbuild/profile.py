"""Build profile shared by the firmware build and binding generation.

The same :class:`BuildProfile` instance feeds the CMake configuration and the
preprocessor defines handed to the binding generator, so the generated
bindings always describe the crypto feature set that was compiled.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import cbor2

from tfmbuild.models import ToolchainBundle

C_COMPILER = "arm-none-eabi-gcc"
CXX_COMPILER = "arm-none-eabi-g++"


@dataclass(frozen=True, slots=True)
class BuildProfile:
    platform: str = "arm/rse/tc/tc3"
    profile: str = "profile_medium"
    test_features: tuple[str, ...] = ("TEST_S", "TEST_S_CRYPTO")
    crypto_config: str = "lib/ext/mbedcrypto/mbedcrypto_config/crypto_config_profile_medium.h"
    mbedtls_config: str = "lib/ext/mbedcrypto/mbedcrypto_config/tfm_mbedcrypto_config_client.h"

    def cmake_defines(self, toolchain: ToolchainBundle) -> dict[str, str]:
        defines = {
            "TFM_PLATFORM": self.platform,
            "TFM_PROFILE": self.profile,
        }
        for feature in self.test_features:
            defines[feature] = "ON"
        defines["CMAKE_C_COMPILER"] = str(toolchain.tool(C_COMPILER))
        defines["CMAKE_CXX_COMPILER"] = str(toolchain.tool(CXX_COMPILER))
        defines["CMAKE_ASM_COMPILER"] = str(toolchain.tool(C_COMPILER))
        return defines

    def config_headers(self, source_dir: Path) -> tuple[Path, Path]:
        """Absolute paths of the PSA crypto and mbedTLS configuration headers."""
        return source_dir / self.crypto_config, source_dir / self.mbedtls_config

    def preprocessor_defines(self, source_dir: Path) -> dict[str, str]:
        crypto_config, mbedtls_config = self.config_headers(source_dir)
        return {
            "MBEDTLS_PSA_CRYPTO_CONFIG_FILE": f'"{crypto_config}"',
            "MBEDTLS_CONFIG_FILE": f'"{mbedtls_config}"',
        }

    def payload(self) -> dict[str, Any]:
        return {
            "platform": self.platform,
            "profile": self.profile,
            "test_features": list(self.test_features),
            "crypto_config": self.crypto_config,
            "mbedtls_config": self.mbedtls_config,
        }

    def digest(self) -> str:
        encoded = cbor2.dumps(self.payload(), canonical=True)
        return hashlib.sha256(encoded).hexdigest()

    def to_json(self) -> str:
        payload = {**self.payload(), "digest": self.digest()}
        return json.dumps(payload, indent=2, sort_keys=True) + "\n"


DEFAULT_PROFILE = BuildProfile()

__all__ = ["DEFAULT_PROFILE", "BuildProfile"]
