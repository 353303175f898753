from __future__ import annotations
from patro.core.engine import EngineRegistry
from patro.engines.conversion import DateConversionEngine
from patro.engines.table import default_table

def build_registry() -> EngineRegistry:
    return EngineRegistry({"bs": DateConversionEngine(default_table(), name="bs")})
