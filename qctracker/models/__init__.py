from .enums import Cadence, DueStatus, MachineStatus, MachineType, QCResult
from .machine import Machine
from .qc_completion import QCCompletion

# Export models
__all__ = ['Machine', 'QCCompletion', 'Cadence', 'DueStatus', 'MachineStatus', 'MachineType', 'QCResult']
