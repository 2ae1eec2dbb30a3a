import re
import uuid
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest

from agriconnect.application.ports.user_repo import UserDto
from agriconnect.application.ports.job_repo import JobDto, JobSearchFilters
from agriconnect.application.ports.application_repo import ApplicationDto
from agriconnect.application.ports.chat_repo import ConversationDto, MessageDto
from agriconnect.application.ports.rating_repo import RatingDto
from agriconnect.application.services.otp_service import OTPService
from agriconnect.application.services.token_service import TokenService
from agriconnect.exceptions import DuplicatePhoneError
from agriconnect.infrastructure.otp.memory_store import InMemoryOTPStore


def _now():
    return datetime.now(timezone.utc)


class RecordingSMSSender:
    def __init__(self):
        self.sent: List[tuple] = []

    async def send(self, phone: str, message: str) -> None:
        self.sent.append((phone, message))


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# profile counters stored camelCase in Mongo, snake_case on the dataclasses
_PROFILE_FIELDS = {
    "jobsPosted": "jobs_posted",
    "totalSpent": "total_spent",
    "jobsCompleted": "jobs_completed",
    "totalEarned": "total_earned",
    "rating": "rating",
    "totalRatings": "total_ratings",
    "avatar": "avatar",
    "name": "name",
}


class FakeUserRepo:
    def __init__(self):
        self.users: Dict[str, UserDto] = {}

    async def create_if_absent(self, phone, role, language, is_verified, profile):
        if any(u.phone == phone for u in self.users.values()):
            raise DuplicatePhoneError(phone)
        now = _now()
        user = UserDto(
            id=str(uuid.uuid4()), phone=phone, role=role, language=language,
            is_verified=is_verified, profile=profile, created_at=now, updated_at=now,
        )
        self.users[user.id] = user
        return user

    async def get_by_phone(self, phone):
        return next((u for u in self.users.values() if u.phone == phone), None)

    async def get_by_id(self, user_id):
        return self.users.get(user_id)

    async def mark_verified(self, user_id):
        self.users[user_id].is_verified = True

    async def increment_profile_field(self, user_id, field, amount=1):
        profile = self.users[user_id].profile
        attr = _PROFILE_FIELDS[field]
        setattr(profile, attr, getattr(profile, attr) + amount)

    async def set_rating(self, user_id, rating, total_ratings):
        profile = self.users[user_id].profile
        profile.rating = rating
        profile.total_ratings = total_ratings


class FakeJobRepo:
    def __init__(self):
        self.jobs: Dict[str, JobDto] = {}

    async def create(self, farmer_id, data):
        now = _now()
        job = JobDto(
            id=str(uuid.uuid4()),
            farmer_id=farmer_id,
            title=data["title"],
            description=data.get("description", ""),
            crop_type=data["cropType"],
            work_type=data["workType"],
            location=data.get("location") or {},
            requirements=data.get("requirements") or {},
            schedule=data.get("schedule") or {},
            wages=data.get("wages") or {},
            status="open",
            applications_count=0,
            hired_workers=[],
            created_at=now,
            updated_at=now,
        )
        self.jobs[job.id] = job
        return job

    async def get(self, job_id):
        return self.jobs.get(job_id)

    async def list_for_farmer(self, farmer_id, limit=10, skip=0):
        jobs = [j for j in self.jobs.values() if j.farmer_id == farmer_id]
        return jobs[skip:skip + limit]

    async def search(self, filters: JobSearchFilters, limit=10, skip=0):
        def matches(job: JobDto) -> bool:
            amount = job.wages.get("amount", 0)
            return all([
                not filters.status or job.status == filters.status,
                not filters.crop_type or job.crop_type == filters.crop_type,
                not filters.work_type or job.work_type == filters.work_type,
                not filters.state or job.location.get("state") == filters.state,
                filters.min_wage is None or amount >= filters.min_wage,
                filters.max_wage is None or amount <= filters.max_wage,
            ])
        jobs = [j for j in self.jobs.values() if matches(j)]
        return jobs[skip:skip + limit]

    async def update(self, job_id, updates):
        job = self.jobs.get(job_id)
        if job is None:
            return False
        if "status" in updates:
            job.status = updates["status"]
        return True

    async def add_hired_worker(self, job_id, labourer_id):
        job = self.jobs[job_id]
        if labourer_id not in job.hired_workers:
            job.hired_workers.append(labourer_id)


class FakeApplicationRepo:
    def __init__(self, job_repo: FakeJobRepo):
        self.job_repo = job_repo
        self.applications: Dict[str, ApplicationDto] = {}

    async def create(self, job_id, labourer_id, farmer_id, message, proposed_wage):
        application = ApplicationDto(
            id=str(uuid.uuid4()), job_id=job_id, labourer_id=labourer_id, farmer_id=farmer_id,
            message=message, proposed_wage=proposed_wage, status="pending", applied_at=_now(),
        )
        self.applications[application.id] = application
        self.job_repo.jobs[job_id].applications_count += 1
        return application

    async def get(self, application_id):
        return self.applications.get(application_id)

    async def find_for_job_and_labourer(self, job_id, labourer_id):
        found = [a for a in self.applications.values() if a.job_id == job_id and a.labourer_id == labourer_id]
        return found[-1] if found else None

    async def list_for_job(self, job_id):
        return [a for a in self.applications.values() if a.job_id == job_id]

    async def list_for_labourer(self, labourer_id):
        return [a for a in self.applications.values() if a.labourer_id == labourer_id]

    async def update_status(self, application_id, status):
        application = self.applications[application_id]
        application.status = status
        application.responded_at = _now()
        return True


class FakeChatRepo:
    def __init__(self):
        self.conversations: Dict[str, ConversationDto] = {}
        self.messages: List[MessageDto] = []

    async def find_conversation(self, participants, job_id=None):
        wanted = set(participants)
        for c in self.conversations.values():
            if set(c.participants) == wanted and c.job_id == job_id:
                return c
        return None

    async def create_conversation(self, participants, job_id=None):
        now = _now()
        conversation = ConversationDto(
            id=str(uuid.uuid4()), participants=list(participants), job_id=job_id,
            last_message=None, created_at=now, updated_at=now,
        )
        self.conversations[conversation.id] = conversation
        return conversation

    async def get_conversation(self, conversation_id):
        return self.conversations.get(conversation_id)

    async def create_message(self, conversation_id, sender_id, receiver_id, content, original_language, message_type):
        message = MessageDto(
            id=str(uuid.uuid4()), conversation_id=conversation_id, sender_id=sender_id,
            receiver_id=receiver_id, content=content, original_language=original_language,
            message_type=message_type, timestamp=_now(),
        )
        self.messages.append(message)
        conversation = self.conversations[conversation_id]
        conversation.last_message = {"_id": message.id, "content": content, "senderId": sender_id}
        conversation.updated_at = message.timestamp
        return message

    async def list_messages(self, conversation_id, limit=50, skip=0):
        found = [m for m in reversed(self.messages) if m.conversation_id == conversation_id]
        return found[skip:skip + limit]


class FakeRatingRepo:
    def __init__(self):
        self.ratings: List[RatingDto] = []

    async def create(self, rater_id, rated_user_id, job_id, rating, comment):
        created = RatingDto(
            id=str(uuid.uuid4()), rater_id=rater_id, rated_user_id=rated_user_id,
            job_id=job_id, rating=rating, comment=comment, created_at=_now(),
        )
        self.ratings.append(created)
        return created

    async def find(self, rater_id, rated_user_id, job_id):
        for r in self.ratings:
            if (r.rater_id, r.rated_user_id, r.job_id) == (rater_id, rated_user_id, job_id):
                return r
        return None

    async def list_for_user(self, rated_user_id):
        return [r for r in self.ratings if r.rated_user_id == rated_user_id]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def otp_store(clock):
    return InMemoryOTPStore(expiry_minutes=10, clock=clock)


@pytest.fixture
def sms():
    return RecordingSMSSender()


@pytest.fixture
def otp_service(otp_store, sms, clock):
    return OTPService(store=otp_store, sms_sender=sms, clock=clock)


@pytest.fixture
def last_code(sms):
    """Returns the code in the most recent SMS."""
    def _last_code() -> Optional[str]:
        if not sms.sent:
            return None
        match = re.search(r"\b(\d{6})\b", sms.sent[-1][1])
        return match.group(1) if match else None
    return _last_code


@pytest.fixture
def token_service():
    return TokenService(secret="test-secret", algorithm="HS256", expire_days=7)


@pytest.fixture
def user_repo():
    return FakeUserRepo()


@pytest.fixture
def job_repo():
    return FakeJobRepo()


@pytest.fixture
def application_repo(job_repo):
    return FakeApplicationRepo(job_repo)


@pytest.fixture
def chat_repo():
    return FakeChatRepo()


@pytest.fixture
def rating_repo():
    return FakeRatingRepo()
