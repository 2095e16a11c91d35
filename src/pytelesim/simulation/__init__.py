"""Simulation layer.

One :class:`SimulationEngine` per simulated vehicle; engines never share
state or random sources.
"""

from pytelesim.simulation.engine import SampleListener, SimulationEngine
from pytelesim.simulation.state import EngineState

__all__ = ["EngineState", "SampleListener", "SimulationEngine"]
