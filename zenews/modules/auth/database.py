import logging
import sqlite3
import uuid

from werkzeug.security import check_password_hash, generate_password_hash

from ...core.database import Database, utcnow_iso
from ...core.errors import ConflictError, PermanentStoreError

logger = logging.getLogger(__name__)

ROLES = ('admin', 'editor', 'user')

PUBLIC_COLUMNS = 'id, email, full_name, role, avatar_url, created_at, updated_at'


class ProfileRepository:
    """Profiles table: identity plus the role that gates admin routes"""

    def __init__(self, db_path):
        self.db_path = db_path

    def get(self, profile_id):
        """Get profile by ID"""
        with Database.connection(self.db_path) as conn:
            row = conn.execute(
                f'SELECT {PUBLIC_COLUMNS} FROM profiles WHERE id = ?', (profile_id,)
            ).fetchone()
        return dict(row) if row else None

    def count(self):
        with Database.connection(self.db_path) as conn:
            return conn.execute('SELECT COUNT(*) FROM profiles').fetchone()[0]

    def create(self, email, password, full_name=None, role='user'):
        """Create a new profile; raises ConflictError when the email is taken"""
        if role not in ROLES:
            raise ValueError(f"Unknown role: {role}")

        now = utcnow_iso()
        profile_id = str(uuid.uuid4())
        try:
            with Database.connection(self.db_path) as conn:
                conn.execute('''
                    INSERT INTO profiles (id, email, password_hash, full_name, role, created_at, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                ''', (profile_id, email.strip().lower(), generate_password_hash(password),
                      full_name or None, role, now, now))
        except sqlite3.IntegrityError as e:
            raise ConflictError('An account with this email already exists') from e
        except sqlite3.Error as e:
            raise PermanentStoreError(f"Failed to create profile: {e}") from e

        logger.info(f"Profile created: {email} (role: {role})")
        return self.get(profile_id)

    def verify_credentials(self, email, password):
        """Return the profile when the password matches, else None"""
        with Database.connection(self.db_path) as conn:
            row = conn.execute(
                'SELECT id, password_hash FROM profiles WHERE email = ?', (email.strip().lower(),)
            ).fetchone()

        if row and row['password_hash'] and check_password_hash(row['password_hash'], password):
            return self.get(row['id'])
        return None

    def update(self, profile_id, full_name=None, avatar_url=None):
        """Update the user-editable profile fields"""
        fields = {}
        if full_name is not None:
            fields['full_name'] = full_name or None
        if avatar_url is not None:
            fields['avatar_url'] = avatar_url or None
        if not fields:
            return self.get(profile_id)

        fields['updated_at'] = utcnow_iso()
        assignments = ', '.join(f"{k} = ?" for k in fields)
        with Database.connection(self.db_path) as conn:
            conn.execute(
                f'UPDATE profiles SET {assignments} WHERE id = ?',
                list(fields.values()) + [profile_id]
            )
        return self.get(profile_id)

