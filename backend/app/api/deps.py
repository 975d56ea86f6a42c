from fastapi import Depends
from sqlalchemy.orm import Session

from app.database import get_db
from app.services.gateway import PersistenceGateway
from app.services.workflow import DisposalWorkflow


def get_gateway(db: Session = Depends(get_db)) -> PersistenceGateway:
    return PersistenceGateway(db)


def get_workflow(gateway: PersistenceGateway = Depends(get_gateway)) -> DisposalWorkflow:
    return DisposalWorkflow(gateway)
