# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */


"""Step outcomes recorded by the setup workflow."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from rich.table import Table

from monitoring_manager import console


class StepStatus(str, Enum):
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class StepResult:
    """Outcome of a single workflow step.

    Attributes:
        step: Human readable step name.
        status: How the step ended.
        detail: Diagnostic text, typically the failing tool's stderr.
        fatal: Whether a failed outcome should fail the whole run.
    """

    step: str
    status: StepStatus
    detail: str = ""
    fatal: bool = True

    @property
    def ok(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.SKIPPED)


@dataclass
class SetupReport:
    """Ordered collection of step results for one setup run."""

    results: list[StepResult] = field(default_factory=list)

    def record(self, result: StepResult) -> StepResult:
        self.results.append(result)
        return result

    def completed(self, step: str, detail: str = "") -> StepResult:
        return self.record(StepResult(step, StepStatus.COMPLETED, detail))

    def skipped(self, step: str, detail: str = "") -> StepResult:
        return self.record(StepResult(step, StepStatus.SKIPPED, detail))

    def failed(self, step: str, detail: str = "") -> StepResult:
        return self.record(StepResult(step, StepStatus.FAILED, detail))

    def get(self, step: str) -> StepResult | None:
        for result in self.results:
            if result.step == step:
                return result
        return None

    @property
    def has_failures(self) -> bool:
        return any(r.status is StepStatus.FAILED and r.fatal for r in self.results)

    def print_summary(self) -> None:
        """Print every recorded step with a status marker."""
        styles = {
            StepStatus.COMPLETED: "[green]\u2713 completed[/green]",
            StepStatus.SKIPPED: "[dim]- skipped[/dim]",
            StepStatus.TIMED_OUT: "[yellow]\u26a0 timed out[/yellow]",
            StepStatus.FAILED: "[red]\u2717 failed[/red]",
        }
        table = Table(title="Setup summary", show_header=True, header_style="bold")
        table.add_column("Step")
        table.add_column("Status")
        table.add_column("Detail", overflow="fold")
        for result in self.results:
            table.add_row(result.step, styles[result.status], result.detail[:200])
        console.print(table)
