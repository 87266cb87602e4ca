# Value Objects - Immutable domain primitives
from .fuel import NivelCombustivel
from .odometer import Odometro
from .schedule import DiaSemana, DiasSemana, Horario
from .foto import Foto

__all__ = ['NivelCombustivel', 'Odometro', 'DiaSemana', 'DiasSemana', 'Horario', 'Foto']
