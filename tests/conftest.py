"""テスト共通のフィクスチャ。"""

import numpy as np
import pytest

from sample_images import diagonal_ramp


@pytest.fixture
def reference_image() -> np.ndarray:
    return diagonal_ramp()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(20240501)
