from django.db.models import Count

from assembly.stages import STAGE_SEQUENCE
from main.models import User


ASSEMBLER_STAGES = tuple(stage for stage in STAGE_SEQUENCE if stage not in ('FINAL_QC',))
INSPECTOR_STAGES = ('FUNCTION_TEST', 'FINAL_QC', 'PACKAGE_AND_SERIALIZE')


class RoleService:

    # 'stages' limits complete_stage; None means every stage
    ROLES = {
        'ADMIN': {
            'name': 'Admin',
            'description': 'Full system access',
            'permissions': ['all'],
            'stages': None,
            'level': 100,
        },
        'SUPERVISOR': {
            'name': 'Supervisor',
            'description': 'Plans batches and signs off any stage',
            'permissions': [
                'manage_products', 'manage_batches', 'complete_stage', 'reject_stage',
                'view_production', 'view_dashboard',
            ],
            'stages': None,
            'level': 80,
        },
        'INSPECTOR': {
            'name': 'Inspector',
            'description': 'Signs off test and quality stages, rejects any stage',
            'permissions': ['complete_stage', 'reject_stage', 'view_production', 'view_dashboard'],
            'stages': INSPECTOR_STAGES,
            'level': 60,
        },
        'ASSEMBLER': {
            'name': 'Assembler',
            'description': 'Completes assembly stages on the line',
            'permissions': ['complete_stage', 'reject_stage', 'view_production'],
            'stages': ASSEMBLER_STAGES,
            'level': 50,
        },
        'VIEWER': {
            'name': 'Viewer',
            'description': 'Read-only access',
            'permissions': ['view_production', 'view_dashboard'],
            'stages': (),
            'level': 10,
        },
    }

    @staticmethod
    def get_all_roles():
        counts = dict(
            User.objects.values_list('role').annotate(count=Count('id'))
        )

        roles = []
        for code, data in RoleService.ROLES.items():
            roles.append({
                'code': code,
                'name': data['name'],
                'description': data['description'],
                'permissions': data['permissions'],
                'stages': list(data['stages']) if data['stages'] is not None else list(STAGE_SEQUENCE),
                'level': data['level'],
                'user_count': counts.get(code, 0),
            })

        roles.sort(key=lambda x: x['level'], reverse=True)

        return {
            'success': True,
            'roles': roles,
            'count': len(roles)
        }

    @staticmethod
    def get_role(role_code):
        role_code = role_code.upper()

        if role_code not in RoleService.ROLES:
            return {'success': False, 'message': 'Role not found', 'error_code': 'NOT_FOUND'}

        data = RoleService.ROLES[role_code]
        stages = data['stages'] if data['stages'] is not None else STAGE_SEQUENCE

        return {
            'success': True,
            'role': {
                'code': role_code,
                'name': data['name'],
                'description': data['description'],
                'permissions': data['permissions'],
                'stages': list(stages),
                'level': data['level'],
                'user_count': User.objects.filter(role=role_code).count(),
            }
        }

    @staticmethod
    def has_permission(role_code, permission):
        role = RoleService.ROLES.get((role_code or '').upper())
        if role is None:
            return False
        return 'all' in role['permissions'] or permission in role['permissions']

    @staticmethod
    def can_perform(role_code, action, stage=None):
        """Default authorization policy for assembly actions."""
        if not RoleService.has_permission(role_code, action):
            return False

        if action != 'complete_stage' or stage is None:
            return True

        allowed_stages = RoleService.ROLES[role_code.upper()]['stages']
        return allowed_stages is None or stage in allowed_stages

    @staticmethod
    def is_valid_role(role_code):
        return isinstance(role_code, str) and role_code.upper() in RoleService.ROLES


def can_perform(role_code, action, stage=None):
    """Module-level entry point for settings.ASSEMBLY_AUTHORIZATION_POLICY."""
    return RoleService.can_perform(role_code, action, stage)
