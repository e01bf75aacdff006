"""Pydantic schemas for analysis results and rebuild jobs."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, confloat

from zip_standardizer.models.analysis import MatchResult, MatchStatus, Project, SubmissionGroup


class MatchResultSchema(BaseModel):
    template_node_id: str
    found_path: str
    score: int
    status: MatchStatus

    def to_model(self) -> MatchResult:
        return MatchResult(
            template_node_id=self.template_node_id,
            found_path=self.found_path,
            score=self.score,
            status=self.status,
        )


class ProjectSchema(BaseModel):
    project_id: str
    nominal_root_path: str
    score: int = 0
    matched_node_count: int = 0
    total_node_count: int = 0
    matches: list[MatchResultSchema] = Field(default_factory=list)
    suggested_new_path: str = ""
    new_path: str = ""
    is_renamed: bool = False

    @classmethod
    def from_model(cls, project: Project) -> ProjectSchema:
        return cls(
            project_id=project.project_id,
            nominal_root_path=project.nominal_root_path,
            score=project.score,
            matched_node_count=project.matched_node_count,
            total_node_count=project.total_node_count,
            matches=[
                MatchResultSchema(
                    template_node_id=match.template_node_id,
                    found_path=match.found_path,
                    score=match.score,
                    status=match.status,
                )
                for match in project.matches
            ],
            suggested_new_path=project.suggested_new_path,
            new_path=project.new_path,
            is_renamed=project.is_renamed,
        )

    def to_model(self) -> Project:
        return Project(
            project_id=self.project_id,
            nominal_root_path=self.nominal_root_path,
            score=self.score,
            matched_node_count=self.matched_node_count,
            total_node_count=self.total_node_count,
            matches=tuple(match.to_model() for match in self.matches),
            suggested_new_path=self.suggested_new_path,
            new_path=self.new_path,
        )


class SubmissionGroupSchema(BaseModel):
    name: str
    projects: list[ProjectSchema] = Field(default_factory=list)
    expected_project_count: int | None = None
    overall_score: int = 0

    @classmethod
    def from_model(cls, group: SubmissionGroup) -> SubmissionGroupSchema:
        return cls(
            name=group.name,
            projects=[ProjectSchema.from_model(project) for project in group.projects],
            expected_project_count=group.expected_project_count,
            overall_score=group.overall_score,
        )

    def to_model(self) -> SubmissionGroup:
        return SubmissionGroup(
            name=self.name,
            projects=tuple(project.to_model() for project in self.projects),
            expected_project_count=self.expected_project_count,
        )


class AnalyzeResponse(BaseModel):
    """Response schema for the analyze endpoint."""

    filename: str
    student_root_path: str
    groups: list[SubmissionGroupSchema]


class RebuildJobSummary(BaseModel):
    """Public view of a rebuild job."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    source_name: str
    output_name: str
    status: str
    progress: confloat(ge=0, le=1)
    current_path: str | None
    error: str | None
    created_at: datetime
    updated_at: datetime
