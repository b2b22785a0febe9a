#!/usr/bin/env python3
"""
Пересчет KPI кампаний и агрегаты дашбордов.

Использование:
    python main.py recalculate [--campaign ID] [--account ID]
    python main.py audit --campaign ID [--csv PATH]
    python main.py serve
    python main.py check

Полный список команд: python main.py --help
"""
from kpi_engine.cli import main


if __name__ == "__main__":
    main()
