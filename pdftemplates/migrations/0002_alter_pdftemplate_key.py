from django.db import migrations, models


class Migration(migrations.Migration):

    dependencies = [
        ('pdftemplates', '0001_initial'),
    ]

    operations = [
        migrations.AlterField(
            model_name='pdftemplate',
            name='key',
            field=models.SlugField(max_length=191, unique=True),
        ),
    ]
