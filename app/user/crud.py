from sqlalchemy.orm import Session
from typing import Optional, List
from datetime import datetime, timedelta
from .models import User, Subscription
from ..core.security import hash_password
from ..core.config import TRIAL_PERIOD_DAYS
import logging

logger = logging.getLogger(__name__)

def get_user_by_username(db: Session, username: str) -> Optional[User]:
    """
    Function: get_user_by_username

    1. Summary:
    Look a user up by login name.

    2. Purpose:
    Used by login when the caller typed a username instead of an email,
    and by registration to reject duplicates.

    3. Parameters:
    - db (Session): Database session
    - username (str): Login name to look for

    4. Returns:
    - Optional[User]: The user, or None
    """
    return db.query(User).filter(User.username == username).first()

def get_user_by_email(db: Session, email: str) -> Optional[User]:
    """
    Function: get_user_by_email

    1. Summary:
    Look a user up by email address.

    2. Purpose:
    Used by login, registration and office account creation to detect an
    address that is already registered.

    3. Parameters:
    - db (Session): Database session
    - email (str): Email address

    4. Returns:
    - Optional[User]: The user, or None
    """
    return db.query(User).filter(User.email == email).first()

def get_user_by_login(db: Session, username_or_email: str) -> Optional[User]:
    if "@" in username_or_email:
        return get_user_by_email(db, username_or_email)
    return get_user_by_username(db, username_or_email)

def create_user(db: Session, user) -> User:
    """
    Function: create_user

    1. Summary:
    Create a new account.

    2. Purpose:
    Accepts either a dict or a pydantic schema. The password is hashed
    before it is stored. Accounts that are not active from the start get a
    trial window that opens now.

    3. Parameters:
    - db (Session): Database session
    - user (Union[dict, UserCreate, AdminUserCreate]): Account data

    4. Returns:
    - User: The persisted user
    """
    data = dict(user) if isinstance(user, dict) else user.model_dump(exclude_unset=False)
    now = datetime.now()

    try:
        db_user = User(
            username=data.get("username"),
            email=data.get("email"),
            password=hash_password(data.get("password")),
            first_name=data.get("first_name"),
            last_name=data.get("last_name"),
            phone=data.get("phone"),
            company_name=data.get("company_name"),
            office_name=data.get("office_name"),
            city=data.get("city"),
            role=data.get("role") or "transporter",
            subscription_plan=data.get("subscription_plan") or "trial",
            subscription_status=data.get("subscription_status") or "trial",
            commission_rate=data.get("commission_rate") or 0,
            parent_user_id=data.get("parent_user_id"),
        )
        if db_user.subscription_status == "trial":
            db_user.trial_start_date = now
            db_user.trial_end_date = now + timedelta(days=TRIAL_PERIOD_DAYS)
        elif db_user.subscription_status == "active":
            db_user.subscription_start_date = now

        db.add(db_user)
        db.commit()
        db.refresh(db_user)
        logger.info(f"Created user {db_user.user_id} with role {db_user.role}")
        return db_user
    except Exception as e:
        db.rollback()
        logger.error(f"Error creating user: {str(e)}")
        raise

def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.user_id == user_id).first()

def update_user(db: Session, user_id: int, user) -> Optional[User]:
    """
    Function: update_user

    1. Summary:
    Update account fields.

    2. Purpose:
    Applies a dict or the set fields of a pydantic schema. A `password`
    key is hashed before it is written.

    3. Parameters:
    - db (Session): Database session
    - user_id (int): Account to update
    - user (Union[dict, BaseModel]): Fields to change

    4. Returns:
    - Optional[User]: The updated user, or None when it does not exist
    """
    db_user = get_user(db, user_id)
    if not db_user:
        return None

    update_data = dict(user) if isinstance(user, dict) else user.model_dump(exclude_unset=True, exclude_none=True)
    if update_data.get("password"):
        update_data["password"] = hash_password(update_data["password"])

    try:
        for field, value in update_data.items():
            setattr(db_user, field, value)
        db.commit()
        db.refresh(db_user)
        return db_user
    except Exception as e:
        db.rollback()
        logger.error(f"Error updating user {user_id}: {str(e)}")
        raise

def delete_user(db: Session, user_id: int) -> bool:
    """
    Function: delete_user

    1. Summary:
    Delete an account and everything it owns.

    2. Purpose:
    Removes notifications, tracking events, bookings, vehicles, stock
    operations, inventory, warehouses, team records and subscription
    periods of the account and of its office accounts, then the office
    accounts and the account.

    3. Parameters:
    - db (Session): Database session
    - user_id (int): Account to delete

    4. Returns:
    - bool: True when deleted, False when the account does not exist
    """
    from ..booking.models import Booking, TrackingEvent
    from ..vehicle.models import Vehicle
    from ..warehouse.models import Warehouse, InventoryItem, StockOperation
    from ..team.models import TeamMember, TeamRole
    from ..notification.models import Notification

    db_user = get_user(db, user_id)
    if not db_user:
        return False

    try:
        office_ids = [office.user_id for office in get_office_accounts(db, user_id)]
        owner_ids = [user_id] + office_ids

        booking_ids = [row.id for row in db.query(Booking.id).filter(Booking.user_id.in_(owner_ids)).all()]
        if booking_ids:
            db.query(TrackingEvent).filter(TrackingEvent.booking_id.in_(booking_ids)).delete(synchronize_session=False)
        db.query(Booking).filter(Booking.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(Notification).filter(Notification.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(Vehicle).filter(Vehicle.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(StockOperation).filter(StockOperation.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(InventoryItem).filter(InventoryItem.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(Warehouse).filter(Warehouse.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(TeamMember).filter(TeamMember.owner_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(TeamRole).filter(TeamRole.owner_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(Subscription).filter(Subscription.user_id.in_(owner_ids)).delete(synchronize_session=False)
        db.query(User).filter(User.approved_by == user_id).update({"approved_by": None}, synchronize_session=False)

        if office_ids:
            db.query(User).filter(User.user_id.in_(office_ids)).delete(synchronize_session=False)
        db.delete(db_user)
        db.commit()
        logger.info(f"Deleted user {user_id} and {len(office_ids)} office accounts")
        return True
    except Exception as e:
        db.rollback()
        logger.error(f"Error deleting user {user_id}: {str(e)}")
        raise

def get_users(db: Session, skip: int = 0, limit: int = 100) -> List[User]:
    return db.query(User).order_by(User.created_at.desc()).offset(skip).limit(limit).all()

def get_office_accounts(db: Session, parent_user_id: int) -> List[User]:
    return (
        db.query(User)
        .filter(User.parent_user_id == parent_user_id, User.role == "office")
        .order_by(User.created_at.desc())
        .all()
    )

def get_network_user_ids(db: Session, user: User) -> List[int]:
    """
    Ids whose bookings belong to the user's view: the user itself plus its
    office accounts. Office accounts only see their own work.
    """
    if user.role == "office":
        return [user.user_id]
    return [user.user_id] + [office.user_id for office in get_office_accounts(db, user.user_id)]

def get_fleet_owner_id(user: User) -> int:
    # Office accounts operate the parent's fleet
    if user.role == "office" and user.parent_user_id:
        return user.parent_user_id
    return user.user_id
