"""Punto de entrada: python -m caminata_tool ..."""

from __future__ import annotations

from caminata_tool.cli import main

if __name__ == "__main__":
    raise SystemExit(main())
