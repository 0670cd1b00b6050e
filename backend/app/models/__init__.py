from app.models.user import User
from app.models.company import Company
from app.models.customer import Customer, Branch
from app.models.operator import Operator
from app.models.application import Application
from app.models.audit import AuditLog
