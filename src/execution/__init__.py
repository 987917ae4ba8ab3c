from .artifacts import RunMetadata, read_prompt_pack, read_roadmap, write_run_output
from .config import RunConfig
from .convenience import create_generator, create_service, run_pipeline
from .ids import generate_run_id
from .runner import PipelineRunner
from .service import PlanningService, RunResult, RunStatusReport, StepsView
