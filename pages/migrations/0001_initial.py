from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PageContent',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('page_name', models.CharField(max_length=100)),
                ('section_key', models.CharField(max_length=100)),
                ('content', models.TextField(blank=True, default='')),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['page_name', 'section_key'],
                'indexes': [models.Index(fields=['page_name'], name='pages_content_page_idx')],
                'constraints': [
                    models.UniqueConstraint(fields=('page_name', 'section_key'), name='pages_content_page_section_uniq'),
                ],
            },
        ),
    ]
