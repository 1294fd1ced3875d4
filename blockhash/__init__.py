"""Blockhash (ブロック平均輝度 + バンド中央値) による知覚ハッシュ。

リサイズ・再圧縮・軽い色ずれでほぼ同じ値になり、別の画像では大きく異なる
16/64/144/256bit のハッシュを計算する。

計算フロー:
1. 各画素の明るさ = R+G+B (整数)
2. N×N グリッドに集計 (割り切れれば矩形の合計、割り切れなければ面積按分)
3. 横4バンドごとの中央値で二値化
4. 行優先でビットを詰める
"""

from __future__ import annotations

import logging
from pathlib import Path

import numpy as np

from .bits import BAND_COUNT, band_medians, pack_bits, threshold_bands
from .blocks import (
    GRID_SIZES,
    SUPPORTED_BITS,
    BlockGrid,
    aggregate_blocks,
    aggregate_exact,
    aggregate_fractional,
    grid_size,
)
from .digest import Blockhash, hamming_distance
from .errors import (
    BlockhashError,
    BlockhashParseError,
    InvalidImageError,
    UnsupportedHashSizeError,
)
from .image import (
    MAX_BRIGHTNESS,
    ArrayImage,
    BrightnessSource,
    PixelSource,
    brightness_matrix,
    load_image,
    pixel_brightness,
    source_max_brightness,
)

__all__ = [
    "BAND_COUNT",
    "GRID_SIZES",
    "MAX_BRIGHTNESS",
    "SUPPORTED_BITS",
    "ArrayImage",
    "BlockGrid",
    "Blockhash",
    "BlockhashError",
    "BlockhashParseError",
    "BrightnessSource",
    "InvalidImageError",
    "PixelSource",
    "UnsupportedHashSizeError",
    "aggregate_blocks",
    "aggregate_exact",
    "aggregate_fractional",
    "band_medians",
    "blockhash",
    "blockhash16",
    "blockhash64",
    "blockhash144",
    "blockhash256",
    "blockhash_file",
    "brightness_matrix",
    "grid_size",
    "hamming_distance",
    "load_image",
    "pack_bits",
    "pixel_brightness",
    "source_max_brightness",
    "threshold_bands",
]

logger = logging.getLogger(__name__)


def blockhash(image: PixelSource | np.ndarray, bits: int = 256) -> Blockhash:
    """画像の知覚ハッシュを計算する。

    Args:
        image: PixelSource を満たすオブジェクト、または cv2.imread の戻り値 (BGR)
        bits: 16, 64, 144, 256 のいずれか
    Returns:
        bits ビットの Blockhash
    Raises:
        UnsupportedHashSizeError: bits がサポート外（画素を読む前に判定）
        InvalidImageError: 幅または高さが 0
    """
    n = grid_size(bits)

    if isinstance(image, np.ndarray):
        image = ArrayImage(image)
    elif not isinstance(image, PixelSource):
        raise TypeError(f"PixelSource ではありません: {type(image).__name__}")

    width, height = image.width, image.height
    if width <= 0 or height <= 0:
        raise InvalidImageError(f"面積ゼロの画像はハッシュ化できません: {width}x{height}")

    gray = brightness_matrix(image)
    grid = aggregate_blocks(gray, n)
    result = Blockhash(pack_bits(threshold_bands(grid, source_max_brightness(image))))
    logger.debug("blockhash%d %dx%d -> %s", bits, width, height, result)
    return result


def blockhash16(image: PixelSource | np.ndarray) -> Blockhash:
    return blockhash(image, 16)


def blockhash64(image: PixelSource | np.ndarray) -> Blockhash:
    return blockhash(image, 64)


def blockhash144(image: PixelSource | np.ndarray) -> Blockhash:
    return blockhash(image, 144)


def blockhash256(image: PixelSource | np.ndarray) -> Blockhash:
    return blockhash(image, 256)


def blockhash_file(path: str | Path, bits: int = 256) -> Blockhash:
    """画像ファイルを読み込んでハッシュを計算する"""
    grid_size(bits)
    return blockhash(load_image(path), bits)
