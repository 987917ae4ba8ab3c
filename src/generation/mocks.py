"""Mock text generators for testing and offline runs."""

from __future__ import annotations

import json

from src.generation.types import GenerationRequest
from src.planning.prompts import PROMPTS_LABEL, SUBTASKS_LABEL

CANNED_SUBTASKS = {
    "subtasks": [
        {
            "id": "step-types-1",
            "title": "Add shared types",
            "description": "Declare the data shapes the feature exchanges.",
            "area": "Types",
            "kind": "create",
            "files": {"modify": [], "create": ["src/types/feature.ts"], "touch": []},
            "dependsOnStepIds": [],
            "rationale": ["Every later step imports these types"],
            "implementationChecklist": ["Define the request and response types"],
            "doneWhen": ["Types compile"],
            "durationHours": 1,
        },
        {
            "id": "step-ui-2",
            "title": "Render the feature",
            "description": "Wire the new data into the existing page.",
            "area": "UI",
            "kind": "modify",
            "files": {"modify": ["src/pages/Home.tsx"], "create": [], "touch": ["src/App.tsx"]},
            "dependsOnStepIds": ["step-types-1"],
            "rationale": ["Users need to see the result"],
            "implementationChecklist": ["Import the types", "Render the list"],
            "doneWhen": ["The page shows the new data"],
            "durationHours": 2,
        },
    ]
}

CANNED_PROMPTS = {
    "prompts": [
        {
            "stepId": "step-types-1",
            "title": "Add shared types",
            "system": "You are a senior engineer working on the types layer.",
            "context": {
                "prdSummary": "",
                "impactedFiles": ["src/types/feature.ts"],
                "relevantRepoConventions": [],
                "tokensOrConstraints": [],
                "evidence": [],
            },
            "instructions": ["Define the request and response types"],
            "guardrails": ["DO NOT modify files outside this step's scope"],
            "deliverables": ["src/types/feature.ts"],
        },
        {
            "stepId": "step-ui-2",
            "title": "Render the feature",
            "system": "You are a senior engineer working on the UI layer.",
            "context": {
                "prdSummary": "",
                "impactedFiles": ["src/pages/Home.tsx"],
                "relevantRepoConventions": [],
                "tokensOrConstraints": [],
                "evidence": [],
            },
            "instructions": ["Import the types", "Render the list"],
            "guardrails": ["ALWAYS follow existing code style"],
            "deliverables": ["Updated src/pages/Home.tsx"],
        },
    ]
}


class MockTextGenerator:
    """Returns canned responses keyed by request label.

    A response may be a string, a dict (serialised to JSON), an exception
    instance (raised), or a list of those consumed one per call; the last
    list entry repeats once the list is exhausted.
    """

    name: str = "MockTextGenerator"

    def __init__(self, responses: dict | None = None) -> None:
        if responses is None:
            responses = {
                SUBTASKS_LABEL: CANNED_SUBTASKS,
                PROMPTS_LABEL: CANNED_PROMPTS,
            }
        self._responses = dict(responses)
        self._cursor: dict[str, int] = {}
        self.requests: list[GenerationRequest] = []

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def calls_for(self, label: str) -> list[GenerationRequest]:
        return [r for r in self.requests if r.label == label]

    async def generate(self, request: GenerationRequest) -> str:
        self.requests.append(request)
        if request.label not in self._responses:
            raise KeyError(f"No canned response for label: {request.label}")

        response = self._responses[request.label]
        if isinstance(response, list):
            index = self._cursor.get(request.label, 0)
            self._cursor[request.label] = index + 1
            response = response[min(index, len(response) - 1)]

        if isinstance(response, BaseException):
            raise response
        if isinstance(response, dict):
            return json.dumps(response)
        return response
