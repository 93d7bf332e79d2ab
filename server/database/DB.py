import logging
import socket
import uuid
from urllib.parse import urlsplit

from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING
from fastapi import Request

from config.config import MONGODB_URI, DATABASE_NAME
from helpers.DateTimeSerializer import DateTimeSerializerVisitor

logger = logging.getLogger(__name__)

COLLECTIONS = [
    "users",
    "events",
    "teams",
    "team_members",
    "event_registrations",
    "evaluations",
    "notifications",
]


def get_db(request: Request):
    """Dependency to get database instance from app state"""
    return request.app.state.db


def new_id() -> str:
    return str(uuid.uuid4())


class Database:
    def __init__(self, uri: str = MONGODB_URI, database_name: str = DATABASE_NAME):
        self.MONGO_URI = uri
        self.database_name = database_name
        self.client = None
        self.db = None

    def connect(self):
        self.client = AsyncIOMotorClient(self.MONGO_URI)
        self.db = self.client[self.database_name]
        logger.info(f"Connected to MongoDB database '{self.database_name}' on host {socket.gethostname()}")

    def close(self):
        if self.client is not None:
            self.client.close()
            self.client = None
            self.db = None

    def serializer(self, obj):
        visitor = DateTimeSerializerVisitor()
        return visitor.visit(obj)

    def check_connection(self):
        hostname = urlsplit(self.MONGO_URI).hostname
        if not hostname:
            logger.warning("Could not read a hostname from MONGODB_URI, skipping DNS check")
            return False

        logger.info(f"Testing DNS resolution for: {hostname}")
        try:
            ip = socket.gethostbyname(hostname)
            logger.info(f"DNS resolution successful: {hostname} -> {ip}")
            return True
        except socket.gaierror as dns_error:
            logger.warning(f"DNS resolution failed for {hostname}: {dns_error}. Continuing, connection may still work")
            return False

    async def ensure_indexes(self):
        """Unique ids everywhere, one registration per (user, event), one evaluation per captain, volunteer, event and team"""
        for name in COLLECTIONS:
            await self.db[name].create_index([("id", ASCENDING)], unique=True)
        await self.db["event_registrations"].create_index(
            [("user_id", ASCENDING), ("event_id", ASCENDING)], unique=True
        )
        await self.db["evaluations"].create_index(
            [("captain_id", ASCENDING), ("volunteer_id", ASCENDING), ("event_id", ASCENDING), ("team_id", ASCENDING)],
            unique=True,
        )
        await self.db["team_members"].create_index([("user_id", ASCENDING)])
        await self.db["teams"].create_index([("captain_id", ASCENDING)])
        logger.info("Database indexes ensured")

    async def add(self, collection_name, data):
        collection = self.db[collection_name]
        data.setdefault("id", new_id())
        result = await collection.insert_one(data)

        if result.inserted_id:
            data["_id"] = str(result.inserted_id)
            data = self.serializer(data)
            return {
                "status": 200,
                "data": data,
                "message": "Document added successfully"
            }
        else:
            return {
                "status": 500,
                "message": "Failed to add document"
            }

    async def find_many(self, collection_name, query=None, projection=None, sort=None, limit=None):
        """Find multiple documents matching query"""
        collection = self.db[collection_name]
        cursor = collection.find(query or {}, projection)

        if sort:
            cursor = cursor.sort(sort)
        if limit:
            cursor = cursor.limit(limit)

        documents = []
        async for doc in cursor:
            doc["_id"] = str(doc["_id"])
            doc = self.serializer(doc)
            documents.append(doc)

        return {
            "status": 200,
            "data": documents,
            "message": "Documents retrieved successfully"
        }

    async def find_one(self, collection_name, query):
        """Find a single document (returns document directly or None)"""
        collection = self.db[collection_name]
        document = await collection.find_one(query)

        if document:
            document["_id"] = str(document["_id"])
            document = self.serializer(document)

        return document

    async def count(self, collection_name, query=None):
        collection = self.db[collection_name]
        return await collection.count_documents(query or {})

    async def update(self, collection_name, query, update_string):
        collection = self.db[collection_name]
        result = await collection.update_one(query, update_string)

        return {
            "status": 200 if result.modified_count > 0 else 404,
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "message": "Document updated successfully" if result.modified_count > 0 else "Document not found or no changes made"
        }

    async def update_many(self, collection_name, query, update_string):
        """Update multiple documents"""
        collection = self.db[collection_name]
        result = await collection.update_many(query, update_string)

        return {
            "status": 200,
            "matched_count": result.matched_count,
            "modified_count": result.modified_count,
            "message": f"Updated {result.modified_count} documents"
        }

