"""blockhash パッケージの例外定義。"""


class BlockhashError(Exception):
    """blockhash が送出する例外の基底クラス。"""


class UnsupportedHashSizeError(BlockhashError, ValueError):
    """サポート外のビット幅が指定された (16/64/144/256 のみ)"""

    def __init__(self, bits: int) -> None:
        super().__init__(f"サポート外のハッシュビット幅です: {bits} (16, 64, 144, 256 のいずれか)")
        self.bits = bits


class InvalidImageError(BlockhashError, ValueError):
    """ハッシュ化できない画像 (面積ゼロ、未対応の形状やdtype)"""


class BlockhashParseError(BlockhashError, ValueError):
    """16進文字列からハッシュを復元できない"""
