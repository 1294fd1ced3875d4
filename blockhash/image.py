"""画素ソースの抽象化と明るさサンプリング。

ハッシュ計算は幅・高さ・座標ごとの画素値を返すオブジェクトであれば何でも受け付ける。
OpenCV (cv2.imread) が返す numpy 配列用のアダプタ ArrayImage を標準で提供する。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

import cv2
import numpy as np

from .errors import InvalidImageError

logger = logging.getLogger(__name__)

# 8bit 画素の明るさの最大値 (R+G+B = 255 * 3)
MAX_BRIGHTNESS = 255 * 3

# 対応する画素 dtype と明るさの最大値
DTYPE_MAX_BRIGHTNESS = {
    np.dtype(np.uint8): 255 * 3,
    np.dtype(np.uint16): 65535 * 3,
}


@runtime_checkable
class PixelSource(Protocol):
    """ハッシュ対象画像のインターフェース。

    デコード済み画像を提供するクラスはこのProtocolを満たせばよい（継承は不要）。
    """

    @property
    def width(self) -> int:
        """画像の幅 (px)"""
        ...

    @property
    def height(self) -> int:
        """画像の高さ (px)"""
        ...

    def get_pixel(self, x: int, y: int) -> Sequence[int]:
        """座標 (x, y) の画素値を返す。

        Args:
            x: 0 <= x < width
            y: 0 <= y < height
        Returns:
            (R, G, B) または (R, G, B, A)。各チャンネル 0-255
            (16bit 画像は 0-65535 とし、max_brightness 属性で 65535 * 3 を返す)
        """
        ...


@runtime_checkable
class BrightnessSource(Protocol):
    """明るさ行列を一括で返せる画素ソース（任意の高速経路）。"""

    def brightness_array(self) -> np.ndarray:
        """(height, width) の int64 配列で各画素の明るさを返す。"""
        ...


def pixel_brightness(sample: Sequence[int], max_brightness: int = MAX_BRIGHTNESS) -> int:
    """1画素の明るさを R+G+B の整数和で返す (0-max_brightness)

    平均を取らずに和のまま扱い、割り算を最後まで先送りする。
    完全透明 (alpha == 0) の画素は白として扱う。
    """
    if len(sample) == 4 and sample[3] == 0:
        return max_brightness
    r, g, b = sample[:3]
    return int(r) + int(g) + int(b)


def source_max_brightness(image: PixelSource) -> int:
    """画素ソースの明るさの最大値。max_brightness 属性がなければ 8bit RGB とみなす"""
    return int(getattr(image, "max_brightness", MAX_BRIGHTNESS))


def brightness_matrix(image: PixelSource) -> np.ndarray:
    """画像全体の明るさを (height, width) の int64 配列にする。"""
    if isinstance(image, BrightnessSource):
        return np.asarray(image.brightness_array(), dtype=np.int64)

    max_brightness = source_max_brightness(image)
    width, height = image.width, image.height
    gray = np.empty((height, width), dtype=np.int64)
    for y in range(height):
        for x in range(width):
            gray[y, x] = pixel_brightness(image.get_pixel(x, y), max_brightness)
    return gray


class ArrayImage:
    """numpy 配列を PixelSource として扱うアダプタ。

    cv2.imread の戻り値 (BGR / BGRA / グレースケール) をそのまま渡せる。
    RGB 順の配列 (Pillow 由来など) は channel_order="rgb" を指定する。
    """

    CHANNEL_ORDERS = ("bgr", "rgb")

    def __init__(self, array: np.ndarray, channel_order: str = "bgr") -> None:
        """
        Args:
            array: (H, W), (H, W, 1), (H, W, 3), (H, W, 4) の uint8 / uint16 配列
            channel_order: "bgr" (OpenCV) または "rgb"
        """
        if channel_order not in self.CHANNEL_ORDERS:
            raise ValueError(f"channel_order は 'bgr' か 'rgb' を指定してください: {channel_order!r}")
        if array.dtype not in DTYPE_MAX_BRIGHTNESS:
            raise InvalidImageError(
                f"uint8 / uint16 以外の画像には対応していません: dtype={array.dtype}"
            )
        if array.ndim == 3 and array.shape[2] == 1:
            array = array[:, :, 0]
        if array.ndim not in (2, 3) or (array.ndim == 3 and array.shape[2] not in (3, 4)):
            raise InvalidImageError(f"未対応の画像形状です: shape={array.shape}")

        self._array = array
        self._channel_order = channel_order
        self._max_brightness = DTYPE_MAX_BRIGHTNESS[array.dtype]

    @property
    def width(self) -> int:
        return int(self._array.shape[1])

    @property
    def height(self) -> int:
        return int(self._array.shape[0])

    @property
    def array(self) -> np.ndarray:
        return self._array

    @property
    def max_brightness(self) -> int:
        """uint8 なら 765、uint16 なら 196605"""
        return self._max_brightness

    def get_pixel(self, x: int, y: int) -> tuple[int, ...]:
        """座標 (x, y) の画素を (R, G, B[, A]) で返す"""
        px = self._array[y, x]
        if self._array.ndim == 2:
            luma = int(px)
            return (luma, luma, luma)
        values = [int(v) for v in px]
        if self._channel_order == "bgr":
            values[0], values[2] = values[2], values[0]
        return tuple(values)

    def brightness_array(self) -> np.ndarray:
        """get_pixel + pixel_brightness と同じ結果をベクトル演算で求める"""
        if self._array.ndim == 2:
            return self._array.astype(np.int64) * 3
        # 和を取るのでチャンネル順は結果に影響しない
        gray = self._array[:, :, :3].astype(np.int64).sum(axis=2)
        if self._array.shape[2] == 4:
            gray[self._array[:, :, 3] == 0] = self._max_brightness
        return gray


def load_image(path: str | Path) -> ArrayImage:
    """画像ファイルを OpenCV で読み込み ArrayImage を返す。

    アルファチャンネルと 16bit の階調を保持するため IMREAD_UNCHANGED で読み込む。
    """
    array = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
    if array is None:
        raise FileNotFoundError(f"画像を読み込めません: {path}")
    logger.debug("loaded %s: shape=%s", path, array.shape)
    return ArrayImage(array)
