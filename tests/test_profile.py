from pathlib import Path

from tfmbuild.models import ToolchainBundle
from tfmbuild.profile import DEFAULT_PROFILE, BuildProfile


def _toolchain() -> ToolchainBundle:
    return ToolchainBundle(path=Path("/opt/gcc-arm-none-eabi"), url="", fetched=False)


def test_cmake_defines_follow_profile_and_toolchain() -> None:
    defines = BuildProfile().cmake_defines(_toolchain())

    assert defines == {
        "TFM_PLATFORM": "arm/rse/tc/tc3",
        "TFM_PROFILE": "profile_medium",
        "TEST_S": "ON",
        "TEST_S_CRYPTO": "ON",
        "CMAKE_C_COMPILER": "/opt/gcc-arm-none-eabi/bin/arm-none-eabi-gcc",
        "CMAKE_CXX_COMPILER": "/opt/gcc-arm-none-eabi/bin/arm-none-eabi-g++",
        "CMAKE_ASM_COMPILER": "/opt/gcc-arm-none-eabi/bin/arm-none-eabi-gcc",
    }


def test_preprocessor_defines_point_into_source_tree() -> None:
    source = Path("/work/trusted-firmware-m")

    defines = BuildProfile().preprocessor_defines(source)

    config_dir = "/work/trusted-firmware-m/lib/ext/mbedcrypto/mbedcrypto_config"
    assert defines == {
        "MBEDTLS_PSA_CRYPTO_CONFIG_FILE": f'"{config_dir}/crypto_config_profile_medium.h"',
        "MBEDTLS_CONFIG_FILE": f'"{config_dir}/tfm_mbedcrypto_config_client.h"',
    }
    assert BuildProfile().config_headers(source) == (
        Path(config_dir, "crypto_config_profile_medium.h"),
        Path(config_dir, "tfm_mbedcrypto_config_client.h"),
    )


def test_digest_is_stable_and_tracks_profile_changes() -> None:
    small = BuildProfile(
        profile="profile_small",
        crypto_config="lib/ext/mbedcrypto/mbedcrypto_config/crypto_config_profile_small.h",
    )

    assert BuildProfile().digest() == DEFAULT_PROFILE.digest()
    assert len(DEFAULT_PROFILE.digest()) == 64
    assert small.digest() != DEFAULT_PROFILE.digest()


def test_to_json_includes_digest() -> None:
    rendered = DEFAULT_PROFILE.to_json()

    assert DEFAULT_PROFILE.digest() in rendered
    assert '"platform": "arm/rse/tc/tc3"' in rendered
