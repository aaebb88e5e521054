"""
Project Service

Project listings with budget use, plus the delivery milestones and team
rosters the project dashboards show.
"""

from typing import Any, Dict, Optional

import structlog

from dbef.core.backend_client import BackendClient, BackendError
from dbef.core.base_service import BaseService, ServiceCapability, ServiceMessage
from dbef.data.models import Project, ProjectMilestone, ProjectTeamMember
from dbef.finance.projects import milestone_overview, portfolio_summary, project_budget, team_roster
from dbef.services.common import not_found, results_of

logger = structlog.get_logger()


class ProjectService(BaseService):
    """Projects, their milestones and their teams."""

    def __init__(self, client: BackendClient):
        super().__init__(
            service_id="project_service",
            name="Project Service",
            description="Projects, delivery milestones and team members",
            capabilities=[ServiceCapability.PROJECTS, ServiceCapability.TEAMS],
        )
        self.client = client

        self.register_handler("list_projects", self._handle_list_projects)
        self.register_handler("get_project", self._handle_get_project)
        self.register_handler("project_statistics", self._handle_project_statistics)
        self.register_handler("project_milestones", self._handle_project_milestones)
        self.register_handler("project_team", self._handle_project_team)

    async def _fetch_project(self, project_id: int) -> Optional[Project]:
        try:
            data = await self.client.get_project(project_id)
        except BackendError as e:
            if e.status_code == 404:
                return None
            raise
        return Project.model_validate(data)

    async def _handle_list_projects(self, message: ServiceMessage) -> Dict[str, Any]:
        data = await self.client.list_projects(**message.payload.get("filters", {}))
        projects = [Project.model_validate(item) for item in results_of(data)]
        return {
            "status": "success",
            "count": len(projects),
            "projects": [
                {**p.model_dump(mode="json"), "budget_status": project_budget(p)}
                for p in projects
            ],
            "summary": portfolio_summary(projects),
        }

    async def _handle_get_project(self, message: ServiceMessage) -> Dict[str, Any]:
        project = await self._fetch_project(message.payload["project_id"])
        if project is None:
            return not_found()
        return {
            "status": "success",
            "project": project.model_dump(mode="json"),
            "budget_status": project_budget(project),
        }

    async def _handle_project_statistics(self, message: ServiceMessage) -> Dict[str, Any]:
        # Backend aggregates pass through untouched
        return {"status": "success", "statistics": await self.client.get_project_statistics()}

    async def _handle_project_milestones(self, message: ServiceMessage) -> Dict[str, Any]:
        project_id = message.payload["project_id"]
        if await self._fetch_project(project_id) is None:
            return not_found()

        data = await self.client.list_project_milestones(project_id)
        milestones = [ProjectMilestone.model_validate(item) for item in results_of(data)]
        overview = milestone_overview(milestones)
        if overview["overdue_count"]:
            self._logger.warning("project_milestones_overdue", project_id=project_id, count=overview["overdue_count"])
        return {
            "status": "success",
            "project_id": project_id,
            "milestones": [m.model_dump(mode="json") for m in milestones],
            "overview": overview,
        }

    async def _handle_project_team(self, message: ServiceMessage) -> Dict[str, Any]:
        project_id = message.payload["project_id"]
        if await self._fetch_project(project_id) is None:
            return not_found()

        data = await self.client.list_project_team(project_id)
        members = [ProjectTeamMember.model_validate(item) for item in results_of(data)]
        return {"status": "success", "project_id": project_id, **team_roster(members)}
