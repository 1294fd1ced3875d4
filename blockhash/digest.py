"""ハッシュ値の型とハミング距離。"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .blocks import SUPPORTED_BITS
from .errors import BlockhashParseError, UnsupportedHashSizeError

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def hamming_distance(hash1: np.ndarray, hash2: np.ndarray) -> int:
    """2つのハッシュ間のハミング距離を算出する"""
    return int(np.unpackbits(np.bitwise_xor(hash1, hash2)).sum())


@dataclass(frozen=True, order=True)
class Blockhash:
    """固定長 (16/64/144/256bit) のハッシュ値。

    data はビッグエンディアンのバイト列で、先頭バイトの最上位ビットが
    グリッド左上のブロックに対応する。辞書のキーや比較に使える。
    """

    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) * 8 not in SUPPORTED_BITS:
            raise UnsupportedHashSizeError(len(self.data) * 8)

    @property
    def bits(self) -> int:
        return len(self.data) * 8

    @classmethod
    def from_bytes(cls, data: bytes) -> Blockhash:
        return cls(bytes(data))

    @classmethod
    def from_int(cls, value: int, bits: int) -> Blockhash:
        """符号なし整数から生成する。bits に収まらない値は ValueError"""
        if bits not in SUPPORTED_BITS:
            raise UnsupportedHashSizeError(bits)
        if value < 0 or value >> bits:
            raise ValueError(f"{bits}bit に収まらない値です: {value:#x}")
        return cls(value.to_bytes(bits // 8, "big"))

    @classmethod
    def from_hex(cls, text: str) -> Blockhash:
        """16進文字列 (大文字小文字どちらも可、接頭辞なし) から生成する"""
        if len(text) * 4 not in SUPPORTED_BITS or not _HEX_DIGITS.issuperset(text):
            raise BlockhashParseError(f"ハッシュ文字列として不正です: {text!r}")
        return cls(bytes.fromhex(text))

    def to_array(self) -> np.ndarray:
        """uint8 配列として返す (np.packbits と同じ形式)"""
        return np.frombuffer(self.data, dtype=np.uint8)

    def distance(self, other: Blockhash) -> int:
        """ハミング距離を返す。ビット幅が異なるハッシュ同士は比較できない"""
        if self.bits != other.bits:
            raise ValueError(f"ビット幅が異なるハッシュは比較できません: {self.bits} と {other.bits}")
        return hamming_distance(self.to_array(), other.to_array())

    def __sub__(self, other: Blockhash) -> int:
        return self.distance(other)

    def __int__(self) -> int:
        return int.from_bytes(self.data, "big")

    def __bytes__(self) -> bytes:
        return self.data

    def __str__(self) -> str:
        return self.data.hex()

    def __repr__(self) -> str:
        return f"Blockhash{self.bits}({self.data.hex()!r})"
