"""ブロック集計: 明るさ行列を N×N グリッドの整数値に集約する。

面積の単位は「1画素 = N×N、1ブロック = W×H」とする。
こうすると幅・高さが N で割り切れなくても全て整数演算で済み、
どちらのモードでも各ブロックの重み合計はちょうど W×H になる。
"""

import logging
from typing import NamedTuple

import numpy as np

from .errors import UnsupportedHashSizeError

logger = logging.getLogger(__name__)

# ハッシュのビット幅 → グリッドの一辺 N (N×N == ビット幅)
GRID_SIZES = {16: 4, 64: 8, 144: 12, 256: 16}
SUPPORTED_BITS = tuple(GRID_SIZES)


class BlockGrid(NamedTuple):
    """ブロックごとの集計値と重み。どちらも (N, N) の int64 配列"""

    values: np.ndarray
    weights: np.ndarray


def grid_size(bits: int) -> int:
    """ビット幅からグリッドの一辺 N を求める"""
    try:
        return GRID_SIZES[bits]
    except KeyError:
        raise UnsupportedHashSizeError(bits) from None


def is_aligned(width: int, height: int, n: int) -> bool:
    return width % n == 0 and height % n == 0


def aggregate_exact(gray: np.ndarray, n: int) -> BlockGrid:
    """幅・高さが N で割り切れる場合の集計。

    画像を (W/N)×(H/N) px の矩形に分割し、ブロック内の明るさを合計する。
    割り算はせず、分数モードと単位を揃えるため N×N 倍する。
    """
    height, width = gray.shape
    block_h, block_w = height // n, width // n
    sums = gray.reshape(n, block_h, n, block_w).sum(axis=(1, 3))
    values = sums * (n * n)
    weights = np.full((n, n), width * height, dtype=np.int64)
    return BlockGrid(values.astype(np.int64), weights)


def overlap_weights(length: int, n: int) -> np.ndarray:
    """1軸ぶんの重なり量 (length, n) を返す。

    画素 p の区間 [p*N, (p+1)*N) とブロック b の区間 [b*L, (b+1)*L) の重なり。
    各行の和は N、各列の和は L になる。
    """
    p = np.arange(length, dtype=np.int64)[:, None]
    b = np.arange(n, dtype=np.int64)[None, :]
    lo = np.maximum(p * n, b * length)
    hi = np.minimum((p + 1) * n, (b + 1) * length)
    return np.clip(hi - lo, 0, None)


def aggregate_fractional(gray: np.ndarray, n: int) -> BlockGrid:
    """幅・高さが N で割り切れない場合の集計（面積按分）

    各画素の明るさを、重なっているブロックそれぞれに重なり面積を掛けて加算する。
    2次元の重なり面積は x 方向と y 方向の重なりの積なので、
    行列積 Wy^T · G · Wx で全画素ぶんをまとめて計算できる。
    画像がグリッドより小さく、1画素が複数ブロックにまたがる場合も同じ式で扱える。
    """
    height, width = gray.shape
    wy = overlap_weights(height, n)
    wx = overlap_weights(width, n)
    values = wy.T @ gray.astype(np.int64) @ wx
    weights = np.outer(wy.sum(axis=0), wx.sum(axis=0))
    return BlockGrid(values, weights)


def aggregate_blocks(gray: np.ndarray, n: int) -> BlockGrid:
    """割り切れるかどうかで集計方法を選ぶ"""
    height, width = gray.shape
    if is_aligned(width, height, n):
        logger.debug("exact aggregation: %dx%d, grid=%d", width, height, n)
        return aggregate_exact(gray, n)
    logger.debug("fractional aggregation: %dx%d, grid=%d", width, height, n)
    return aggregate_fractional(gray, n)
