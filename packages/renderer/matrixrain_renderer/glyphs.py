"""Symbol sets the rain draws from."""

from __future__ import annotations

import random

CHARSETS: dict[str, str] = {
    "katakana": "ﾊﾐﾋｰｳｼﾅﾓﾆｻﾜﾂｵﾘｱﾎﾃﾏｹﾒｴｶｷﾑﾕﾗｾﾈｽﾀﾇﾍｦｲｸｺｿﾁﾄﾉﾌﾔﾖﾙﾚﾛﾝ012345789Z:.\"=*+-<>¦╌ç",
    "ascii": "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz:.\"=*+-<>|",
    "binary": "01",
}


def list_charsets() -> list[str]:
    return sorted(CHARSETS.keys())


def random_glyph(rng: random.Random, charset: str) -> str:
    return rng.choice(CHARSETS.get(charset, CHARSETS["katakana"]))
