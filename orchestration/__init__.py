from .fanout import FanOutOrchestrator, ModelJob
from .synthesis import SynthesisStage, build_synthesis_prompt, build_task_synthesis_prompt
from .planner import TaskPlanner, assign_task_index, default_assignments, validate_assignments
from .supervisor import ResearchSupervisor, RunResult

__all__ = [
    "FanOutOrchestrator",
    "ModelJob",
    "SynthesisStage",
    "build_synthesis_prompt",
    "build_task_synthesis_prompt",
    "TaskPlanner",
    "assign_task_index",
    "default_assignments",
    "validate_assignments",
    "ResearchSupervisor",
    "RunResult",
]
