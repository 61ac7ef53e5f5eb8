"""Projects facade for back-office reporting."""

from sqlalchemy.orm import Session


def project_stats(db: Session) -> dict:
    from routers.projects import service as projects_service

    return projects_service.project_stats(db)


def list_projects_for_owner(db: Session, *, owner_id: int):
    from routers.projects import service as projects_service

    return projects_service.list_projects_for_owner(db, owner_id=owner_id)
