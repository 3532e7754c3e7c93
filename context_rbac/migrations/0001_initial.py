import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


def _scoped_constraints(model_name, fields, name):
    prefix = f"context_rbac_{model_name}_{name}"
    return [
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.UniqueConstraint(
                fields=(*fields, "context_type", "context_id"),
                name=f"{prefix}_inst",
            ),
        ),
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.UniqueConstraint(
                condition=models.Q(context_type__isnull=False, context_id__isnull=True),
                fields=(*fields, "context_type"),
                name=f"{prefix}_type",
            ),
        ),
        migrations.AddConstraint(
            model_name=model_name,
            constraint=models.UniqueConstraint(
                condition=models.Q(context_type__isnull=True),
                fields=tuple(fields),
                name=f"{prefix}_glob",
            ),
        ),
    ]


SLUG_VALIDATOR = django.core.validators.RegexValidator(
    code="invalid_slug",
    message="Slugs may only contain letters, digits, underscores and dashes.",
    regex="^[A-Za-z0-9_-]+$",
)


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Permission',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('context_type', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('context_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('name', models.CharField(max_length=150)),
                ('slug', models.CharField(max_length=100, validators=[SLUG_VALIDATOR])),
            ],
            options={
                'ordering': ['slug'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='Role',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('context_type', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('context_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('name', models.CharField(max_length=150)),
                ('slug', models.CharField(max_length=100, validators=[SLUG_VALIDATOR])),
                ('level', models.IntegerField(default=0, help_text='Higher levels are more privileged')),
            ],
            options={
                'ordering': ['-level', 'slug'],
                'abstract': False,
            },
        ),
        migrations.CreateModel(
            name='RoleAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('context_type', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('context_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('subject_type', models.CharField(max_length=150)),
                ('subject_id', models.CharField(db_index=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('role', models.ForeignKey(on_delete=django.db.models.deletion.DO_NOTHING, related_name='assignments', to='context_rbac.role')),
            ],
        ),
        migrations.CreateModel(
            name='PermissionAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('context_type', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('context_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('subject_type', models.CharField(max_length=150)),
                ('subject_id', models.CharField(db_index=True, max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('permission', models.ForeignKey(on_delete=django.db.models.deletion.DO_NOTHING, related_name='assignments', to='context_rbac.permission')),
            ],
        ),
        migrations.CreateModel(
            name='PermissionRoleAssignment',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('context_type', models.CharField(blank=True, db_index=True, max_length=150, null=True)),
                ('context_id', models.CharField(blank=True, db_index=True, max_length=64, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('permission', models.ForeignKey(on_delete=django.db.models.deletion.DO_NOTHING, related_name='role_grants', to='context_rbac.permission')),
                ('role', models.ForeignKey(on_delete=django.db.models.deletion.DO_NOTHING, related_name='permission_grants', to='context_rbac.role')),
            ],
        ),
        *_scoped_constraints("role", ["slug"], "slug"),
        *_scoped_constraints("permission", ["slug"], "slug"),
        *_scoped_constraints("roleassignment", ["subject_type", "subject_id", "role"], "grant"),
        *_scoped_constraints("permissionassignment", ["subject_type", "subject_id", "permission"], "grant"),
        *_scoped_constraints("permissionroleassignment", ["role", "permission"], "grant"),
    ]
