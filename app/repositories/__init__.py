from app.repositories.payroll_repository import PayConfig, PayrollRepository, WorkRecordRow

__all__ = [
    'PayConfig',
    'PayrollRepository',
    'WorkRecordRow',
]
