from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='PdfTemplate',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('key', models.CharField(max_length=191, unique=True)),
                ('name', models.CharField(blank=True, default='', max_length=255)),
                ('data_source_type', models.CharField(choices=[('database', 'Database table'), ('csv', 'CSV / Excel import'), ('erp', 'ERP')], default='database', max_length=20)),
                ('source_table', models.CharField(blank=True, max_length=128, null=True)),
                ('doctype', models.CharField(blank=True, max_length=191, null=True)),
                ('file_path', models.CharField(blank=True, max_length=500, null=True)),
                ('fields_config', models.JSONField(blank=True, default=dict)),
                ('images_config', models.JSONField(blank=True, default=list)),
                ('use_as_background', models.BooleanField(default=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
            ],
            options={
                'ordering': ['key'],
            },
        ),
    ]
