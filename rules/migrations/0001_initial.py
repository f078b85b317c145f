import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Rule',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('title', models.CharField(max_length=500)),
                ('description', models.TextField()),
                ('area', models.JSONField(blank=True, default=list)),
                ('discipline', models.CharField(blank=True, default='', max_length=64)),
                ('skill', models.CharField(blank=True, default='', max_length=64)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['title'], name='rules_rule_title_idx'),
                    models.Index(fields=['created_at'], name='rules_rule_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='Suggestion',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('title', models.CharField(max_length=500)),
                ('description', models.TextField()),
                ('area', models.JSONField(blank=True, default=list)),
                ('discipline', models.CharField(max_length=64)),
                ('skill', models.CharField(max_length=64)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['created_at'], name='rules_sugg_created_idx')],
            },
        ),
        migrations.CreateModel(
            name='RuleImpression',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rule_title', models.CharField(blank=True, default='', max_length=500)),
                ('action', models.CharField(choices=[('viewed', 'Viewed'), ('skipped', 'Skipped'), ('reviewed', 'Reviewed')], max_length=16)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('rule', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='impressions', to='rules.rule')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [
                    models.Index(fields=['rule', 'action'], name='rules_impr_rule_action_idx'),
                    models.Index(fields=['created_at'], name='rules_impr_created_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='RuleResponse',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('rule_title', models.CharField(blank=True, default='', max_length=500)),
                ('resonates', models.BooleanField()),
                ('applicable', models.BooleanField()),
                ('learned_new', models.BooleanField()),
                ('thoughts', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('rule', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='responses', to='rules.rule')),
            ],
            options={
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['created_at'], name='rules_resp_created_idx')],
            },
        ),
    ]
