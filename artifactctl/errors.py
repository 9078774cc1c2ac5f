from typing import Optional


class ArtifactCleanerError(Exception):
    """Fatal error: the whole run stops and the process exits 1."""


class ConfigError(ArtifactCleanerError):
    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message)


class ProjectCheckError(ArtifactCleanerError):
    pass


class ProjectNotFoundError(ArtifactCleanerError):
    def __init__(self, project_id: int, server: str):
        self.project_id = project_id
        super().__init__(f"Project {project_id} does not exist on {server}")


class DiscoveryError(ArtifactCleanerError):
    def __init__(self, message: str, page: Optional[int] = None):
        self.page = page
        super().__init__(message if page is None else f"page {page}: {message}")
