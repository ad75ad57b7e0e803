from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name='Organization',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('name', models.CharField(max_length=100)),
                ('organization_type', models.CharField(choices=[('HEADQUARTERS', 'Headquarters'), ('PARTNER', 'Partner')], max_length=20)),
                ('tree_path', models.CharField(db_index=True, max_length=500)),
                ('level', models.PositiveSmallIntegerField(default=0, help_text='0 for headquarters, 1 for first-tier partners, and so on')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('headquarters', models.ForeignKey(blank=True, help_text='Owning headquarters (empty for a headquarters itself)', null=True, on_delete=django.db.models.deletion.CASCADE, related_name='tenant_organizations', to='organizations.organization')),
                ('parent', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name='children', to='organizations.organization')),
            ],
            options={
                'verbose_name': 'Organization',
                'verbose_name_plural': 'Organizations',
                'ordering': ['tree_path'],
            },
        ),
    ]
