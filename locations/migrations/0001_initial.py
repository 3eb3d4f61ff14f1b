import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Location',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('city', models.CharField(max_length=255)),
                ('state', models.CharField(max_length=100)),
                ('state_abbr', models.CharField(help_text='Two-letter state code, e.g. TX', max_length=2)),
                ('county', models.CharField(blank=True, max_length=255, null=True)),
                ('population', models.IntegerField(blank=True, null=True)),
                ('latitude', models.FloatField(blank=True, null=True)),
                ('longitude', models.FloatField(blank=True, null=True)),
                ('zip_codes', models.JSONField(blank=True, default=list, help_text='ZIP codes covered by this city')),
                ('priority_rank', models.IntegerField(blank=True, help_text='Lower ranks are worked first', null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'db_table': 'geo_locations',
                'ordering': ['priority_rank', 'city'],
                'indexes': [models.Index(fields=['priority_rank'], name='geo_locatio_priorit_5d1f0c_idx')],
                'unique_together': {('city', 'state_abbr')},
            },
        ),
        migrations.CreateModel(
            name='Keyword',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('keyword', models.CharField(max_length=500)),
                ('search_volume', models.IntegerField(blank=True, null=True)),
                ('difficulty', models.IntegerField(blank=True, help_text='Difficulty score (0-100)', null=True)),
                ('current_rank', models.IntegerField(blank=True, null=True)),
                ('target_rank', models.IntegerField(default=1)),
                ('target_url', models.URLField(blank=True, null=True)),
                ('last_checked', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='keywords', to='locations.location')),
            ],
            options={
                'db_table': 'keywords',
                'ordering': ['-search_volume', 'keyword'],
                'indexes': [models.Index(fields=['location', 'current_rank'], name='keywords_locatio_8a2e47_idx')],
                'unique_together': {('location', 'keyword')},
            },
        ),
    ]
