"""Seed script: creates a demo company with customers, branches and operators.

Idempotent: checks for existing records before inserting.
Run: python scripts/seed.py   (from the backend/ directory)
"""
import asyncio
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings
from app.core.security import hash_password
from app.models.company import Company
from app.models.customer import Branch, Customer
from app.models.operator import Operator
from app.models.user import User


# ─── Upsert helpers ───────────────────────────────────────────────────────────

async def _upsert_user(db: AsyncSession, email: str, name: str, role: str) -> User:
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalars().first()
    if user:
        print(f"  [skip] User {email}")
        return user
    user = User(
        email=email, name=name,
        password_hash=hash_password("changeme123"),
        role=role, is_active=True,
    )
    db.add(user)
    await db.flush()
    print(f"  [new]  User {email} ({role})")
    return user


async def _upsert_company(db: AsyncSession, owner: User, name: str) -> Company:
    result = await db.execute(select(Company).where(Company.user_id == owner.id))
    company = result.scalars().first()
    if company:
        print(f"  [skip] Company {name}")
        return company
    company = Company(user_id=owner.id, name=name)
    db.add(company)
    await db.flush()
    print(f"  [new]  Company {name}")
    return company


async def _upsert_customer(db: AsyncSession, company: Company, code: str, name: str,
                           branches: list[tuple[str, str]]) -> Customer:
    result = await db.execute(
        select(Customer).where(Customer.company_id == company.id, Customer.customer_code == code)
    )
    customer = result.scalars().first()
    if customer:
        print(f"  [skip] Customer {code}")
        return customer
    customer = Customer(company_id=company.id, customer_code=code, name=name)
    db.add(customer)
    await db.flush()
    for branch_code, branch_name in branches:
        db.add(Branch(customer_id=customer.id, branch_code=branch_code, name=branch_name))
    await db.flush()
    print(f"  [new]  Customer {code} {name} ({len(branches)} branches)")
    return customer


async def _upsert_operator(db: AsyncSession, company: Company, name: str,
                           status: str = "approved", is_active: bool = True) -> Operator:
    result = await db.execute(
        select(Operator).where(Operator.company_id == company.id, Operator.name == name)
    )
    operator = result.scalars().first()
    if operator:
        print(f"  [skip] Operator {name}")
        return operator
    operator = Operator(company_id=company.id, name=name, status=status, is_active=is_active)
    db.add(operator)
    await db.flush()
    print(f"  [new]  Operator {name} ({status})")
    return operator


# ─── Main ─────────────────────────────────────────────────────────────────────

async def seed():
    engine = create_async_engine(settings.DATABASE_URL, echo=False)
    SessionLocal = async_sessionmaker(engine, expire_on_commit=False)

    async with SessionLocal() as db:
        print("\n── Users ──")
        await _upsert_user(db, "admin@example.com", "Admin User", "ADMIN")
        owner = await _upsert_user(db, "firma@example.com", "Demo İlaçlama", "COMPANY")
        await db.commit()

        print("\n── Company ──")
        company = await _upsert_company(db, owner, "Demo İlaçlama Ltd.")
        await db.commit()

        print("\n── Customers ──")
        await _upsert_customer(db, company, "CUS-10001", "Anadolu Gıda A.Ş.", [
            ("BR-001", "Merkez Şube"),
            ("BR-002", "Kadıköy Şube"),
        ])
        await _upsert_customer(db, company, "CUS-10002", "Ege Otelcilik", [
            ("BR-001", "Alsancak Otel"),
        ])
        await db.commit()

        print("\n── Operators ──")
        await _upsert_operator(db, company, "Ahmet Yılmaz")
        await _upsert_operator(db, company, "Mehmet Demir")
        await _upsert_operator(db, company, "Ayşe Kaya", status="pending")
        await db.commit()

    await engine.dispose()
    print("\n✓ Seed complete.")
    print("  admin@example.com  / changeme123  (ADMIN)")
    print("  firma@example.com  / changeme123  (COMPANY)")
    print("  Customers: CUS-10001 · CUS-10002")


if __name__ == "__main__":
    asyncio.run(seed())
