"""Block sinks the synthesizer writes into.

``CommandStreamWorld`` produces vanilla commands that can be piped into a
server console; ``MemoryWorld`` keeps the blocks in a dict.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Protocol, Tuple

Pos = Tuple[int, int, int]

# Vanilla /fill refuses volumes above this many blocks.
MAX_FILL_VOLUME = 32768


class World(Protocol):
    def set_block(self, x: int, y: int, z: int, block: str) -> None:
        ...

    def fill(self, x1: int, y1: int, z1: int, x2: int, y2: int, z2: int, block: str) -> None:
        ...


def _range(a: int, b: int) -> range:
    return range(min(a, b), max(a, b) + 1)


class CommandStreamWorld:
    def __init__(self) -> None:
        self.lines: List[str] = []

    def set_block(self, x: int, y: int, z: int, block: str) -> None:
        self.lines.append(f"setblock {x} {y} {z} {block} replace")

    def fill(self, x1: int, y1: int, z1: int, x2: int, y2: int, z2: int, block: str) -> None:
        volume = len(_range(x1, x2)) * len(_range(y1, y2)) * len(_range(z1, z2))
        if volume > MAX_FILL_VOLUME:
            raise ValueError(f"fill volume {volume} exceeds {MAX_FILL_VOLUME}")
        self.lines.append(f"fill {x1} {y1} {z1} {x2} {y2} {z2} {block} replace")

    def payload(self) -> str:
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"

    def write(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.payload(), encoding="utf-8", errors="strict")


class MemoryWorld:
    def __init__(self) -> None:
        self.blocks: Dict[Pos, str] = {}
        self.log: List[Tuple[Pos, str]] = []

    def set_block(self, x: int, y: int, z: int, block: str) -> None:
        self.blocks[(x, y, z)] = block
        self.log.append(((x, y, z), block))

    def fill(self, x1: int, y1: int, z1: int, x2: int, y2: int, z2: int, block: str) -> None:
        for x in _range(x1, x2):
            for y in _range(y1, y2):
                for z in _range(z1, z2):
                    self.blocks[(x, y, z)] = block

    def block_name(self, x: int, y: int, z: int) -> str:
        return self.blocks.get((x, y, z), "minecraft:air")

    def placements_of(self, block: str) -> List[Pos]:
        return [pos for pos, name in self.log if name == block]
