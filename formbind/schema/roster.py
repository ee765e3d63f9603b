"""Read-only roster records used to populate selects and person rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from formbind.schema.models import FieldOption


class Job(BaseModel):
    """Job record; extra attributes from the job store are kept verbatim."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    title: str
    job_number: str | None = None

    def option(self) -> FieldOption:
        label = f"{self.title} (#{self.job_number})" if self.job_number else self.title
        return FieldOption(value=self.title, label=label)


class Location(BaseModel):
    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    name: str

    def option(self) -> FieldOption:
        return FieldOption(value=self.name, label=self.name)


class Worker(BaseModel):
    """Person selectable into a linked person row."""

    model_config = ConfigDict(extra="allow", frozen=True)

    id: str
    full_name: str
    nric: str | None = None
    work_permit_no: str | None = None
    company: str | None = None

    @property
    def identifier(self) -> str:
        return self.nric or self.work_permit_no or ""

    def display_label(self) -> str:
        if self.work_permit_no:
            return f"{self.full_name} ({self.work_permit_no[-4:]})"
        return self.full_name

    def option(self) -> FieldOption:
        return FieldOption(value=self.id, label=self.display_label())


class Roster(BaseModel):
    """Jobs, workers and locations as supplied by the hosting application."""

    model_config = ConfigDict(extra="forbid")

    jobs: list[Job] = Field(default_factory=list)
    workers: list[Worker] = Field(default_factory=list)
    locations: list[Location] = Field(default_factory=list)

    def find_worker(self, worker_id: str) -> Worker | None:
        for worker in self.workers:
            if worker.id == worker_id:
                return worker
        return None

    def options_for(self, source: str) -> tuple[FieldOption, ...]:
        if source == "jobs":
            return tuple(job.option() for job in self.jobs)
        if source == "locations":
            return tuple(location.option() for location in self.locations)
        if source == "workers":
            return tuple(worker.option() for worker in self.workers)
        raise ValueError(f"Unsupported options source: {source}")
