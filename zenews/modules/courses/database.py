"""
Course Repository
=================

SQLite persistence for courses and their modules, videos and materials.
Deleting a course or module cascades to its children.
"""

import logging
import uuid

from ..news.database import store_errors
from ...core.database import Database, utcnow_iso

logger = logging.getLogger(__name__)

COURSE_FIELDS = ['title', 'description', 'difficulty', 'category', 'duration']
MODULE_FIELDS = ['title', 'description', 'order_index']
VIDEO_FIELDS = ['title', 'description', 'video_url', 'duration', 'order_index']
MATERIAL_FIELDS = ['title', 'description', 'material_url', 'material_type', 'file_size', 'order_index']


class CourseRepository:

    def __init__(self, db_path):
        self.db_path = db_path

    # ===== Helpers =====

    def _insert(self, table, values, action):
        now = utcnow_iso()
        values = {'id': str(uuid.uuid4()), 'created_at': now, 'updated_at': now, **values}
        columns = list(values)
        with store_errors(action):
            with Database.connection(self.db_path) as conn:
                conn.execute(
                    f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({', '.join('?' for _ in columns)})",
                    [values[c] for c in columns]
                )
        return self._get(table, values['id'], action)

    def _get(self, table, row_id, action):
        with store_errors(action):
            with Database.connection(self.db_path) as conn:
                row = conn.execute(f"SELECT * FROM {table} WHERE id = ?", (row_id,)).fetchone()
        return dict(row) if row else None

    def _update(self, table, row_id, fields, allowed, action):
        values = {k: v for k, v in fields.items() if k in allowed}
        if not values:
            return self._get(table, row_id, action)
        values['updated_at'] = utcnow_iso()
        assignments = ', '.join(f"{c} = ?" for c in values)
        with store_errors(action):
            with Database.connection(self.db_path) as conn:
                cursor = conn.execute(
                    f"UPDATE {table} SET {assignments} WHERE id = ?",
                    list(values.values()) + [row_id]
                )
                if cursor.rowcount == 0:
                    return None
        return self._get(table, row_id, action)

    def _delete(self, table, row_id, action):
        with store_errors(action):
            with Database.connection(self.db_path) as conn:
                cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", (row_id,))
                deleted = cursor.rowcount > 0
        return deleted

    def _children(self, table, module_id, action):
        with store_errors(action):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute(
                    f"SELECT * FROM {table} WHERE module_id = ? ORDER BY order_index ASC, created_at ASC",
                    (module_id,)
                ).fetchall()
        return [dict(r) for r in rows]

    def _next_order_index(self, table, module_id):
        with store_errors('count items'):
            with Database.connection(self.db_path) as conn:
                row = conn.execute(
                    f"SELECT COUNT(*) FROM {table} WHERE module_id = ?", (module_id,)
                ).fetchone()
        return row[0]

    # ===== Courses =====

    def list_courses(self):
        """All courses, newest first, each with a modules_count"""
        with store_errors('fetch courses'):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute('''
                    SELECT c.*, COUNT(m.id) AS modules_count
                    FROM courses c
                    LEFT JOIN course_modules m ON m.course_id = c.id
                    GROUP BY c.id
                    ORDER BY c.created_at DESC
                ''').fetchall()
        return [dict(r) for r in rows]

    def get_course(self, course_id):
        return self._get('courses', course_id, 'fetch course')

    def create_course(self, data, created_by=None):
        values = {k: data[k] for k in COURSE_FIELDS if data.get(k) is not None}
        values.setdefault('duration', '0 hours')
        values.update(enrolled_count=0, rating=0.0, created_by=created_by)
        return self._insert('courses', values, 'create course')

    # ===== Modules =====

    def list_modules(self, course_id):
        """Modules in order, each with its videos and materials"""
        with store_errors('fetch modules'):
            with Database.connection(self.db_path) as conn:
                rows = conn.execute(
                    'SELECT * FROM course_modules WHERE course_id = ? ORDER BY order_index ASC, created_at ASC',
                    (course_id,)
                ).fetchall()
        modules = []
        for row in rows:
            module = dict(row)
            module['videos'] = self.list_videos(module['id'])
            module['materials'] = self.list_materials(module['id'])
            modules.append(module)
        return modules

    def get_module(self, course_id, module_id):
        module = self._get('course_modules', module_id, 'fetch module')
        if module and module['course_id'] != course_id:
            return None
        return module

    def create_module(self, course_id, data):
        values = {k: data.get(k) for k in MODULE_FIELDS}
        values['order_index'] = values['order_index'] or 0
        values['course_id'] = course_id
        return self._insert('course_modules', values, 'create module')

    def update_module(self, module_id, fields):
        return self._update('course_modules', module_id, fields, MODULE_FIELDS, 'update module')

    def delete_module(self, module_id):
        return self._delete('course_modules', module_id, 'delete module')

    # ===== Videos =====

    def list_videos(self, module_id):
        return self._children('course_videos', module_id, 'fetch videos')

    def get_video(self, video_id):
        return self._get('course_videos', video_id, 'fetch video')

    def create_video(self, module_id, data):
        values = {k: data.get(k) for k in VIDEO_FIELDS}
        values['duration'] = values['duration'] or 0
        if values['order_index'] is None:
            values['order_index'] = self._next_order_index('course_videos', module_id)
        values['module_id'] = module_id
        return self._insert('course_videos', values, 'create video')

    def update_video(self, video_id, fields):
        return self._update('course_videos', video_id, fields, VIDEO_FIELDS, 'update video')

    def delete_video(self, video_id):
        return self._delete('course_videos', video_id, 'delete video')

    # ===== Materials =====

    def list_materials(self, module_id):
        return self._children('course_materials', module_id, 'fetch materials')

    def get_material(self, material_id):
        return self._get('course_materials', material_id, 'fetch material')

    def create_material(self, module_id, data):
        values = {k: data.get(k) for k in MATERIAL_FIELDS}
        values['material_type'] = values['material_type'] or 'other'
        if values['order_index'] is None:
            values['order_index'] = self._next_order_index('course_materials', module_id)
        values['module_id'] = module_id
        return self._insert('course_materials', values, 'create material')

    def delete_material(self, material_id):
        return self._delete('course_materials', material_id, 'delete material')
