"""バンド中央値による二値化とビット列のパック。"""

import numpy as np

from .blocks import BlockGrid
from .image import MAX_BRIGHTNESS

# グリッドを横方向に4等分したバンドごとに中央値を取る
BAND_COUNT = 4


def band_medians(values: np.ndarray) -> np.ndarray:
    """各バンドの中央値を返す (BAND_COUNT 個)

    バンド内の値は偶数個なので、中央2値の整数平均 (切り捨て) を中央値とする。
    """
    bands = values.reshape(BAND_COUNT, -1)
    ordered = np.sort(bands, axis=1)
    mid = ordered.shape[1] // 2
    return (ordered[:, mid - 1] + ordered[:, mid]) // 2


def threshold_bands(grid: BlockGrid, max_brightness: int = MAX_BRIGHTNESS) -> np.ndarray:
    """ブロックごとのビット (N, N) を uint8 で返す。

    バンドの中央値より大きければ 1。中央値と等しい場合は、
    最大明るさの半分を超えるブロックだけ 1 にする（真っ白な画像は全ビット 1）。
    max_brightness は画素1つの明るさの上限 (8bit なら 765、16bit なら 196605)。
    """
    n = grid.values.shape[0]
    bands = grid.values.reshape(BAND_COUNT, -1)
    half = (max_brightness * grid.weights // 2).reshape(BAND_COUNT, -1)
    medians = band_medians(grid.values)[:, None]

    bits = (bands > medians) | ((bands == medians) & (bands > half))
    return bits.astype(np.uint8).reshape(n, n)


def pack_bits(bits: np.ndarray) -> bytes:
    """行優先でビットを詰める。グリッド先頭のビットが最上位ビットになる"""
    return np.packbits(bits.ravel()).tobytes()
