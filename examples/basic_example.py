"""
Basic example of using crudql with SQLAlchemy.

This example demonstrates:
- Declaring a minimal GraphQL type and deriving its CRUD schema
- Backing the generated fields with a SQLAlchemy collection
- Creating, listing and updating records through GraphQL
"""

import asyncio
import logging

from sqlalchemy import Column, Float, Integer, String
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase

from crudql import build_schema
from crudql.sql import sqlalchemy_data_factory


# SQLAlchemy Models
class Base(DeclarativeBase):
    pass


class Book(Base):
    __tablename__ = 'books'

    id = Column(String(64), primary_key=True)
    title = Column(String(200), nullable=False)
    page_count = Column(Integer)
    created = Column(Float)
    modified = Column(Float)


SDL = """
type Book {
    id: ID!
    title: String!
    pageCount: Int
}
"""


async def main():
    """Main demo function."""
    logging.basicConfig(level=logging.INFO)

    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with async_session() as session:
        # Collections are acquired per request from the context's db_session
        crud = await build_schema(
            SDL,
            ['Book'],
            data=sqlalchemy_data_factory({'Book': Book}),
            timestamps=True,
            request_scoped=True,
        )
        context = {'db_session': session}

        print(crud.sdl())

        for title, pages in [("Dune", 412), ("Emma", 474), ("Ubik", 202)]:
            result = await crud.execute(
                'mutation ($data: BookInput!) { book { create(data: $data) } }',
                variable_values={'data': {'title': title, 'pageCount': pages}},
                context_value=context,
            )
            print("Created:", result.data)

        query = """
        query {
            book {
                list(filter: [{field: "pageCount", op: GT, value: "300"}], order: [{field: "title"}], first: 10) {
                    edges { cursor node { id title pageCount created } }
                    pageInfo { hasNextPage hasPreviousPage }
                }
            }
        }
        """
        result = await crud.execute(query, context_value=context)
        if result.errors:
            print("Errors:", result.errors)
        else:
            print("Result:", result.data)

        result = await crud.execute(
            'mutation { book { update(id: "missing", data: {title: "x"}) } }',
            context_value=context,
        )
        print("Update of missing book:", [e.message for e in result.errors or []])

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
