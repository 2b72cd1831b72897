"""
Database path constants.

This module contains all Realtime Database paths used by the service.
Centralizing these values makes it easy to follow the store layout.
"""


class StorePaths:
    """Realtime Database paths."""

    CLIENTS = "ClientInfo"
    PROJECTS = "ProjectsInfo"
    PROJECT_DATA = "ProjectData"

    BIOPHYSICAL = "Biophysical"
    IMPACTS = "Impacts"

    @classmethod
    def client(cls, client_id: str) -> str:
        return f"{cls.CLIENTS}/{client_id}"

    @classmethod
    def project(cls, project_id: str) -> str:
        return f"{cls.PROJECTS}/{project_id}"

    @classmethod
    def biophysical(cls, company_name: str, project_name: str) -> str:
        """
        Biophysical rows for a project.

        Args:
            company_name: Client company name the project is stored under
            project_name: Project name

        Returns:
            Path to the biophysical collection
        """
        return f"{cls.PROJECT_DATA}/{company_name}/{project_name}/{cls.BIOPHYSICAL}"

    @classmethod
    def impacts(cls, company_name: str, project_name: str) -> str:
        """
        Impacts rows for a project; keyed like the biophysical rows.

        Args:
            company_name: Client company name the project is stored under
            project_name: Project name

        Returns:
            Path to the impacts collection
        """
        return f"{cls.PROJECT_DATA}/{company_name}/{project_name}/{cls.IMPACTS}"


class APIConstants:
    """General HTTP constants."""

    CONTENT_TYPE_JSON = "application/json"
    EVENT_STREAM = "text/event-stream"

    # Timeouts (in seconds)
    DEFAULT_TIMEOUT = 30.0
    LONG_TIMEOUT = 60.0
