"""Domain models for implementation planning.

Upstream summaries are what the loader produces from the stage-one and
stage-two output directories. Plan steps, agent prompts and the roadmap are
what this stage produces; they serialise to the camelCase JSON documents
shared with the other pipeline stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class ImpactArea(Enum):
    UI = "UI"
    HOOKS = "Hooks"
    STATE = "State"
    API_SERVICE = "API/Service"
    AUTH = "Auth"
    ROUTING = "Routing"
    STYLING = "Styling"
    TYPES = "Types"
    TESTS = "Tests"
    BUILD_CONFIG = "Build/Config"
    UNKNOWN = "Unknown"

    @property
    def slug(self) -> str:
        """Lowercase form used in synthesized step ids, e.g. ``api-service``."""
        return self.value.lower().replace("/", "-")


class StepKind(Enum):
    CREATE = "create"
    MODIFY = "modify"
    REFACTOR = "refactor"
    CONFIG = "config"
    TEST = "test"
    DOCS = "docs"


# ---------------------------------------------------------------------------
# Upstream summaries
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CodebaseSummary:
    """Facts about the codebase produced by stage one."""

    all_files: list[str] = field(default_factory=list)
    conventions: dict = field(default_factory=dict)
    rules: dict = field(default_factory=dict)
    tokens: dict = field(default_factory=dict)
    manifest: dict | None = None
    guidance: str = ""
    directives: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PrdRef:
    hash: str
    source: str | None = None

    def to_dict(self) -> dict:
        data = {"hash": self.hash}
        if self.source is not None:
            data["source"] = self.source
        return data

    @classmethod
    def from_dict(cls, data: dict) -> PrdRef:
        return cls(hash=data.get("hash", ""), source=data.get("source"))


@dataclass(frozen=True)
class ImpactFile:
    path: str
    score: float
    role: str
    reasons: list[str] = field(default_factory=list)
    evidence: dict | None = None


@dataclass(frozen=True)
class AreaConfidence:
    area: ImpactArea
    confidence: float
    rationale: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ClarifyingQuestion:
    id: str
    question_text: str
    type: str = "text"
    required: bool = False
    options: list[str] = field(default_factory=list)
    rationale: str | None = None


@dataclass(frozen=True)
class ClarifyingAnswer:
    question_id: str
    value: str | list[str]

    @property
    def text(self) -> str:
        if isinstance(self.value, list):
            return ", ".join(str(v) for v in self.value)
        return str(self.value)


@dataclass(frozen=True)
class ImpactSummary:
    """Impact analysis of the change request produced by stage two."""

    prd: PrdRef
    files: list[ImpactFile] = field(default_factory=list)
    areas: list[AreaConfidence] = field(default_factory=list)
    questions: list[ClarifyingQuestion] = field(default_factory=list)
    answers: list[ClarifyingAnswer] = field(default_factory=list)
    new_files_suggested: list[str] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def primary_files(self) -> list[ImpactFile]:
        return [f for f in self.files if f.role == "primary"]

    @property
    def secondary_files(self) -> list[ImpactFile]:
        return [f for f in self.files if f.role == "secondary"]

    def answer_for(self, question_id: str) -> ClarifyingAnswer | None:
        for answer in self.answers:
            if answer.question_id == question_id:
                return answer
        return None


# ---------------------------------------------------------------------------
# Plan steps
# ---------------------------------------------------------------------------

@dataclass
class StepFiles:
    modify: list[str] = field(default_factory=list)
    create: list[str] = field(default_factory=list)
    touch: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "modify": list(self.modify),
            "create": list(self.create),
            "touch": list(self.touch),
        }

    @classmethod
    def from_dict(cls, data: dict) -> StepFiles:
        return cls(
            modify=list(data.get("modify", [])),
            create=list(data.get("create", [])),
            touch=list(data.get("touch", [])),
        )


@dataclass
class PlanStep:
    id: str
    title: str
    description: str
    area: ImpactArea = ImpactArea.UNKNOWN
    kind: StepKind = StepKind.MODIFY
    files: StepFiles = field(default_factory=StepFiles)
    depends_on_step_ids: list[str] = field(default_factory=list)
    rationale: list[str] = field(default_factory=list)
    implementation_checklist: list[str] = field(default_factory=list)
    done_when: list[str] = field(default_factory=list)
    duration_hours: float = 1.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "area": self.area.value,
            "kind": self.kind.value,
            "files": self.files.to_dict(),
            "dependsOnStepIds": list(self.depends_on_step_ids),
            "rationale": list(self.rationale),
            "implementationChecklist": list(self.implementation_checklist),
            "doneWhen": list(self.done_when),
            "durationHours": self.duration_hours,
        }

    @classmethod
    def from_dict(cls, data: dict) -> PlanStep:
        return cls(
            id=data["id"],
            title=data["title"],
            description=data["description"],
            area=ImpactArea(data["area"]),
            kind=StepKind(data["kind"]),
            files=StepFiles.from_dict(data.get("files", {})),
            depends_on_step_ids=list(data.get("dependsOnStepIds", [])),
            rationale=list(data.get("rationale", [])),
            implementation_checklist=list(data.get("implementationChecklist", [])),
            done_when=list(data.get("doneWhen", [])),
            duration_hours=data.get("durationHours", 1.0),
        )


# ---------------------------------------------------------------------------
# Agent prompts
# ---------------------------------------------------------------------------

@dataclass
class PromptContext:
    prd_summary: str = ""
    impacted_files: list[str] = field(default_factory=list)
    relevant_repo_conventions: list[str] = field(default_factory=list)
    tokens_or_constraints: list[str] = field(default_factory=list)
    evidence: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "prdSummary": self.prd_summary,
            "impactedFiles": list(self.impacted_files),
            "relevantRepoConventions": list(self.relevant_repo_conventions),
            "tokensOrConstraints": list(self.tokens_or_constraints),
            "evidence": list(self.evidence),
        }

    @classmethod
    def from_dict(cls, data: dict) -> PromptContext:
        return cls(
            prd_summary=data.get("prdSummary", ""),
            impacted_files=list(data.get("impactedFiles", [])),
            relevant_repo_conventions=list(data.get("relevantRepoConventions", [])),
            tokens_or_constraints=list(data.get("tokensOrConstraints", [])),
            evidence=list(data.get("evidence", [])),
        )


@dataclass
class AgentPrompt:
    step_id: str
    title: str = ""
    system: str = ""
    context: PromptContext = field(default_factory=PromptContext)
    instructions: list[str] = field(default_factory=list)
    guardrails: list[str] = field(default_factory=list)
    deliverables: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "stepId": self.step_id,
            "title": self.title,
            "system": self.system,
            "context": self.context.to_dict(),
            "instructions": list(self.instructions),
            "guardrails": list(self.guardrails),
            "deliverables": list(self.deliverables),
        }

    @classmethod
    def from_dict(cls, data: dict) -> AgentPrompt:
        return cls(
            step_id=data["stepId"],
            title=data.get("title", ""),
            system=data.get("system", ""),
            context=PromptContext.from_dict(data.get("context", {})),
            instructions=list(data.get("instructions", [])),
            guardrails=list(data.get("guardrails", [])),
            deliverables=list(data.get("deliverables", [])),
        )


@dataclass
class AgentPromptPack:
    generated_at: str
    prompts: list[AgentPrompt] = field(default_factory=list)

    def get(self, step_id: str) -> AgentPrompt | None:
        for prompt in self.prompts:
            if prompt.step_id == step_id:
                return prompt
        return None

    def to_dict(self) -> dict:
        return {
            "generatedAt": self.generated_at,
            "prompts": [p.to_dict() for p in self.prompts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> AgentPromptPack:
        return cls(
            generated_at=data["generatedAt"],
            prompts=[AgentPrompt.from_dict(p) for p in data.get("prompts", [])],
        )


# ---------------------------------------------------------------------------
# Roadmap
# ---------------------------------------------------------------------------

@dataclass
class RiskItem:
    severity: str
    risk: str
    mitigation: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "severity": self.severity,
            "risk": self.risk,
            "mitigation": list(self.mitigation),
        }

    @classmethod
    def from_dict(cls, data: dict) -> RiskItem:
        return cls(
            severity=data["severity"],
            risk=data["risk"],
            mitigation=list(data.get("mitigation", [])),
        )


@dataclass
class VerificationItem:
    type: str
    instructions: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"type": self.type, "instructions": list(self.instructions)}

    @classmethod
    def from_dict(cls, data: dict) -> VerificationItem:
        return cls(type=data["type"], instructions=list(data.get("instructions", [])))


@dataclass
class RoadmapArtifacts:
    files_to_modify: list[str] = field(default_factory=list)
    files_affected: list[str] = field(default_factory=list)
    files_to_create: list[str] = field(default_factory=list)
    dependencies: list[dict] = field(default_factory=list)

    @property
    def total_files(self) -> int:
        return (
            len(self.files_to_modify)
            + len(self.files_affected)
            + len(self.files_to_create)
        )

    def to_dict(self) -> dict:
        return {
            "filesToModify": list(self.files_to_modify),
            "filesAffected": list(self.files_affected),
            "filesToCreate": list(self.files_to_create),
            "dependencies": list(self.dependencies),
        }

    @classmethod
    def from_dict(cls, data: dict) -> RoadmapArtifacts:
        return cls(
            files_to_modify=list(data.get("filesToModify", [])),
            files_affected=list(data.get("filesAffected", [])),
            files_to_create=list(data.get("filesToCreate", [])),
            dependencies=list(data.get("dependencies", [])),
        )


@dataclass
class Roadmap:
    prd: PrdRef
    generated_at: str
    plan: list[PlanStep] = field(default_factory=list)
    artifacts: RoadmapArtifacts = field(default_factory=RoadmapArtifacts)
    acceptance_criteria: list[str] = field(default_factory=list)
    verification: list[VerificationItem] = field(default_factory=list)
    risks: list[RiskItem] = field(default_factory=list)
    open_questions: list[dict] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)

    @property
    def total_duration_hours(self) -> float:
        return sum(step.duration_hours for step in self.plan)

    def to_dict(self) -> dict:
        return {
            "prd": self.prd.to_dict(),
            "generatedAt": self.generated_at,
            "plan": [s.to_dict() for s in self.plan],
            "artifacts": self.artifacts.to_dict(),
            "acceptanceCriteria": list(self.acceptance_criteria),
            "verification": [v.to_dict() for v in self.verification],
            "risks": [r.to_dict() for r in self.risks],
            "openQuestions": list(self.open_questions),
            "notes": list(self.notes),
        }

    @classmethod
    def from_dict(cls, data: dict) -> Roadmap:
        return cls(
            prd=PrdRef.from_dict(data.get("prd", {})),
            generated_at=data["generatedAt"],
            plan=[PlanStep.from_dict(s) for s in data.get("plan", [])],
            artifacts=RoadmapArtifacts.from_dict(data.get("artifacts", {})),
            acceptance_criteria=list(data.get("acceptanceCriteria", [])),
            verification=[VerificationItem.from_dict(v) for v in data.get("verification", [])],
            risks=[RiskItem.from_dict(r) for r in data.get("risks", [])],
            open_questions=list(data.get("openQuestions", [])),
            notes=list(data.get("notes", [])),
        )
