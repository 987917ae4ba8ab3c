"""Plan viewer: browse completed runs, their ordered steps and agent prompts."""

from __future__ import annotations

import os
from pathlib import Path

from rich.markup import escape
from textual import on
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.reactive import reactive
from textual.widgets import Footer, Header, OptionList, Static
from textual.widgets.option_list import Option

from plan_tui.scanner import PlanRunInfo, scan_plan_runs
from src.planning.models import AgentPrompt, PlanStep

AREA_COLORS = {
    "Types": "cyan",
    "Build/Config": "cyan",
    "API/Service": "green",
    "State": "magenta",
    "Hooks": "magenta",
    "Routing": "yellow",
    "UI": "yellow",
    "Styling": "blue",
    "Tests": "green",
    "Auth": "red",
}
DEFAULT_COLOR = "white"


def format_step_option(index: int, step: PlanStep) -> str:
    color = AREA_COLORS.get(step.area.value, DEFAULT_COLOR)
    return (
        f"[bold {color}]{index:>2}.[/] {escape(step.title)} "
        f"[dim]{escape(step.area.value)}/{step.kind.value} {step.duration_hours:g}h[/]"
    )


def _section(title: str, items: list[str]) -> list[str]:
    if not items:
        return []
    return ["", f"{title}:"] + [f"  - {item}" for item in items]


def format_step_detail(step: PlanStep, prompt: AgentPrompt | None) -> str:
    """Plain-text detail for one step followed by its agent prompt."""
    lines = [step.title, f"{step.id}  {step.area.value}/{step.kind.value}  {step.duration_hours:g}h", "", step.description]
    if step.depends_on_step_ids:
        lines += ["", f"Depends on: {', '.join(step.depends_on_step_ids)}"]
    lines += _section("Modify", step.files.modify)
    lines += _section("Create", step.files.create)
    lines += _section("Touch", step.files.touch)
    lines += _section("Checklist", step.implementation_checklist)
    lines += _section("Done when", step.done_when)

    lines += ["", "=" * 40, ""]
    if prompt is None:
        lines.append("(no agent prompt for this step)")
        return "\n".join(lines)

    lines += ["Agent prompt", "", prompt.system]
    if prompt.context.prd_summary:
        lines += ["", f"PRD: {prompt.context.prd_summary}"]
    lines += _section("Impacted files", prompt.context.impacted_files)
    lines += _section("Conventions", prompt.context.relevant_repo_conventions)
    lines += _section("Tokens / constraints", prompt.context.tokens_or_constraints)
    lines += _section("Instructions", prompt.instructions)
    lines += _section("Guardrails", prompt.guardrails)
    lines += _section("Deliverables", prompt.deliverables)
    return "\n".join(lines)


def format_run_summary(run: PlanRunInfo) -> str:
    roadmap = run.roadmap
    lines = [f"Run {run.run_id}", f"Generated {roadmap.generated_at}", ""]
    lines += roadmap.notes
    lines += _section("Risks", [f"[{r.severity}] {r.risk}" for r in roadmap.risks])
    if run.metadata is not None:
        lines += ["", f"Engine: {run.metadata.engine_name}", f"Duration: {run.metadata.duration_ms} ms"]
    return "\n".join(lines)


class DetailPanel(VerticalScroll):
    content_text: reactive[str] = reactive("")
    title_text: reactive[str] = reactive("Details")

    def compose(self) -> ComposeResult:
        yield Static("Select a run to view its plan", id="detail-content", markup=False)

    def watch_content_text(self, value: str) -> None:
        try:
            widget = self.query_one("#detail-content", Static)
            widget.update(value)
        except Exception:
            pass

    def watch_title_text(self, value: str) -> None:
        self.border_title = value


class PlanViewerApp(App):
    TITLE = "Implementation Plans"

    CSS = """
    #main-layout {
        height: 1fr;
        width: 100%;
    }

    #lists {
        width: 1fr;
        height: 100%;
    }

    #run-list {
        height: 1fr;
        border: solid $surface-lighten-2;
    }

    #step-list {
        height: 2fr;
        border: solid $surface-lighten-2;
    }

    #run-list:focus, #step-list:focus {
        border: solid $accent;
    }

    #detail-panel {
        width: 1fr;
        height: 100%;
        border-left: solid $primary;
        padding: 1 1;
    }

    #detail-panel.hidden {
        display: none;
    }

    #detail-content {
        width: 100%;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("r", "refresh", "Refresh"),
        Binding("d", "toggle_detail", "Detail"),
        Binding("tab", "focus_next", "Runs/Steps", show=True),
        Binding("question_mark", "help_screen", "?=Help"),
    ]

    def __init__(self, output_dir: Path | None = None) -> None:
        super().__init__()
        self.output_dir = output_dir or self._find_output_dir()
        self.runs: list[PlanRunInfo] = []
        self.current_run: PlanRunInfo | None = None

    def _find_output_dir(self) -> Path:
        root = Path(os.environ.get("PLANNER_OUTPUT_ROOT", "out"))
        return Path.cwd() / root / "pipe-3"

    def compose(self) -> ComposeResult:
        yield Header()
        with Horizontal(id="main-layout"):
            with Vertical(id="lists"):
                yield OptionList(id="run-list")
                yield OptionList(id="step-list")
            yield DetailPanel(id="detail-panel")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#run-list", OptionList).border_title = "Runs"
        self.query_one("#step-list", OptionList).border_title = "Steps"
        self._load_runs()

    def _load_runs(self) -> None:
        self.runs = scan_plan_runs(self.output_dir)
        run_list = self.query_one("#run-list", OptionList)
        run_list.clear_options()
        if not self.runs:
            run_list.add_option(Option(f"[dim]No completed runs in {escape(str(self.output_dir))}[/]", disabled=True))
            self._show_run(None)
            return
        run_list.add_options(Option(escape(run.label), id=run.run_id) for run in self.runs)
        run_list.highlighted = 0
        run_list.focus()
        self._show_run(self.runs[0])

    def _run_by_id(self, run_id: str | None) -> PlanRunInfo | None:
        for run in self.runs:
            if run.run_id == run_id:
                return run
        return None

    def _show_run(self, run: PlanRunInfo | None) -> None:
        self.current_run = run
        step_list = self.query_one("#step-list", OptionList)
        step_list.clear_options()
        panel = self.query_one("#detail-panel", DetailPanel)
        if run is None:
            panel.title_text = "Details"
            panel.content_text = "Select a run to view its plan"
            return
        step_list.add_options(
            Option(format_step_option(i, step), id=step.id)
            for i, step in enumerate(run.roadmap.plan, start=1)
        )
        panel.title_text = f"Run {run.run_id}"
        panel.content_text = format_run_summary(run)

    @on(OptionList.OptionHighlighted, "#run-list")
    def _on_run_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        self._show_run(self._run_by_id(event.option.id))

    @on(OptionList.OptionHighlighted, "#step-list")
    def _on_step_highlighted(self, event: OptionList.OptionHighlighted) -> None:
        run = self.current_run
        if run is None:
            return
        step = next((s for s in run.roadmap.plan if s.id == event.option.id), None)
        if step is None:
            return
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.title_text = step.id
        panel.content_text = format_step_detail(step, run.prompt_pack.get(step.id))

    def action_refresh(self) -> None:
        self._load_runs()
        self.notify("Runs refreshed")

    def action_toggle_detail(self) -> None:
        panel = self.query_one("#detail-panel", DetailPanel)
        panel.toggle_class("hidden")

    def action_help_screen(self) -> None:
        self.notify(
            "[bold]Keys:[/] Up/Down=select  Tab=runs/steps  d=detail  r=refresh  q=quit",
            timeout=6,
        )


def run_viewer() -> None:
    """Entry point for the plan-viewer CLI."""
    app = PlanViewerApp()
    app.run()
