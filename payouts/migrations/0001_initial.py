from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('core', '0001_initial'),
        ('students', '0001_initial'),
        ('lessons', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TeacherPayout',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('period_start', models.DateField()),
                ('period_end', models.DateField(db_index=True)),
                ('total_hours', models.DecimalField(decimal_places=2, default=0, max_digits=10)),
                ('total_amount', models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ('currency', models.CharField(max_length=3)),
                ('status', models.CharField(choices=[('PENDING', 'Pending'), ('PAID', 'Paid')], db_index=True, default='PENDING', max_length=20)),
                ('paid_at', models.DateTimeField(blank=True, null=True)),
                ('notes', models.TextField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('created_by', models.ForeignKey(blank=True, db_column='created_by_id', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='created_payouts', to=settings.AUTH_USER_MODEL)),
                ('organization', models.ForeignKey(db_column='organization_id', on_delete=django.db.models.deletion.CASCADE, related_name='teacher_payouts', to='core.organization')),
                ('teacher', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='payouts', to='students.teacherprofile')),
            ],
            options={
                'verbose_name': 'Teacher Payout',
                'verbose_name_plural': 'Teacher Payouts',
                'db_table': 'teacher_payouts',
                'ordering': ['-period_end', '-created_at'],
            },
        ),
        migrations.CreateModel(
            name='TeacherPayoutLesson',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('lesson_date', models.DateTimeField()),
                ('duration_minutes', models.PositiveIntegerField()),
                ('hourly_rate', models.DecimalField(decimal_places=2, max_digits=12)),
                ('amount', models.DecimalField(decimal_places=2, max_digits=12)),
                ('qualification_reason', models.CharField(choices=[('COMPLETED', 'Completed'), ('CONFIRMED', 'Confirmed'), ('LATE_CANCELLATION', 'Late cancellation')], max_length=30)),
                ('payout_percent', models.PositiveIntegerField(default=100)),
                ('student_name', models.CharField(max_length=255)),
                ('lesson_title', models.CharField(max_length=255)),
                ('lesson', models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name='payout_line', to='lessons.lesson')),
                ('payout', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='lines', to='payouts.teacherpayout')),
            ],
            options={
                'verbose_name': 'Teacher Payout Lesson',
                'verbose_name_plural': 'Teacher Payout Lessons',
                'db_table': 'teacher_payout_lessons',
                'ordering': ['lesson_date', 'id'],
            },
        ),
        migrations.AddIndex(
            model_name='teacherpayout',
            index=models.Index(fields=['organization', 'status'], name='payout_org_status_idx'),
        ),
        migrations.AddIndex(
            model_name='teacherpayout',
            index=models.Index(fields=['teacher', 'period_end'], name='payout_teacher_end_idx'),
        ),
    ]
