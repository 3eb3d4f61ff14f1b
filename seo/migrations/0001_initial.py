import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ResearchJob',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('page_type', models.CharField(choices=[('main_city', 'Main City'), ('topic', 'Topic'), ('neighborhood', 'Neighborhood')], max_length=20)),
                ('topic', models.CharField(blank=True, max_length=255, null=True)),
                ('neighborhood', models.CharField(blank=True, max_length=255, null=True)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('processing', 'Processing'), ('completed', 'Completed'), ('failed', 'Failed')], default='pending', max_length=20)),
                ('results_json', models.JSONField(blank=True, help_text='title, metaDescription, content (with JSON-LD), questions, keywords', null=True)),
                ('word_count', models.IntegerField(default=0)),
                ('questions_count', models.IntegerField(default=0)),
                ('error_message', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('completed_at', models.DateTimeField(blank=True, null=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='research_jobs', to='locations.location')),
            ],
            options={
                'db_table': 'research_jobs',
                'ordering': ['-created_at'],
                'indexes': [models.Index(fields=['location', 'status'], name='research_jo_locatio_3c9b1e_idx')],
            },
        ),
    ]
