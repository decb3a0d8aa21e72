"""Dashboard configuration."""
from functools import lru_cache
from pathlib import Path
from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Dashboard settings from environment."""

    # Backend
    base_url: str = "https://dev.azure.com/{organization}"
    api_version: str = "7.0"
    default_organization: str = ""
    default_project: str = ""
    request_timeout: float = 30.0
    batch_size: int = 200
    summary_workers: int = 8

    # Field reference names
    field_title: str = "System.Title"
    field_type: str = "System.WorkItemType"
    field_state: str = "System.State"
    field_parent: str = "System.Parent"
    field_assigned_to: str = "System.AssignedTo"
    field_tags: str = "System.Tags"
    field_pending_hours: str = "Custom.Hspendientes"
    field_weekly_capacity: str = "Custom.Cargasemanal"
    field_logged_hours: str = "Custom.Horas"
    field_log_date: str = "Custom.Fechalinea"
    field_estimated_hours: str = "Custom.Horasestimadasdetarea"
    field_client_rate: str = "Custom.Valorrepetitivo"

    # Work item types
    root_type: str = "Product Backlog Item"
    task_type: str = "Task"
    leaf_type: str = "Linea"

    # Planning
    completed_states: str = "Done,Closed,Resolved,Removed"
    standard_week_hours: float = 40.0
    min_display_weeks: int = 4

    # Application
    credentials_path: str = str(Path.home() / ".workhours" / "credentials.json")
    log_level: str = "INFO"

    @property
    def completed_states_list(self) -> List[str]:
        return [s.strip() for s in self.completed_states.split(",") if s.strip()]

    @property
    def item_fields(self) -> List[str]:
        """Fields requested for every work item load."""
        return [
            "System.Id",
            self.field_title,
            self.field_type,
            self.field_state,
            self.field_parent,
            self.field_assigned_to,
            self.field_tags,
            self.field_pending_hours,
            self.field_weekly_capacity,
            self.field_logged_hours,
            self.field_log_date,
            self.field_estimated_hours,
            self.field_client_rate,
        ]

    model_config = SettingsConfigDict(
        env_prefix="WORKHOURS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )


@lru_cache
def get_settings() -> Settings:
    return Settings()
