import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('locations', '0001_initial'),
        ('seo', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='PublishedPage',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('wp_post_id', models.IntegerField(help_text='WordPress page ID')),
                ('url', models.URLField(max_length=500)),
                ('page_type', models.CharField(choices=[('main_city', 'Main City'), ('topic', 'Topic'), ('neighborhood', 'Neighborhood')], max_length=20)),
                ('topic', models.CharField(blank=True, max_length=255, null=True)),
                ('neighborhood', models.CharField(blank=True, max_length=255, null=True)),
                ('title', models.CharField(max_length=500)),
                ('slug', models.SlugField(max_length=500)),
                ('parent_post_id', models.IntegerField(blank=True, null=True)),
                ('status', models.CharField(choices=[('publish', 'Published'), ('draft', 'Draft'), ('pending', 'Pending')], default='publish', max_length=20)),
                ('published_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('location', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='published_pages', to='locations.location')),
                ('research_job', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='published_pages', to='seo.researchjob')),
            ],
            options={
                'db_table': 'wordpress_pages',
                'ordering': ['-published_at', '-created_at'],
                'indexes': [models.Index(fields=['location', 'status'], name='wordpress_p_locatio_71d2a4_idx'), models.Index(fields=['wp_post_id'], name='wordpress_p_wp_post_0b6e93_idx')],
            },
        ),
    ]
