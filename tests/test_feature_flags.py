from __future__ import annotations

import os

from rangelab.core import feature_flags


def test_env_and_override_stack() -> None:
    env_var = feature_flags.ENV_VAR
    original = os.environ.get(env_var)
    try:
        if env_var in os.environ:
            del os.environ[env_var]

        assert feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY) is False

        feature_flags.set_env_flags([" Spots.Strict_Consistency "])
        assert feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY) is True

        with feature_flags.override(disable={feature_flags.STRICT_CONSISTENCY}):
            assert feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY) is False
            with feature_flags.override(enable={"drill.preview"}):
                assert feature_flags.is_enabled("drill.preview") is True
                assert feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY) is False

        assert feature_flags.is_enabled(feature_flags.STRICT_CONSISTENCY) is True
        assert feature_flags.is_enabled("drill.preview") is False

    finally:
        if original is None:
            os.environ.pop(env_var, None)
        else:
            os.environ[env_var] = original
