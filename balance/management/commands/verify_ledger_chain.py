"""
Ledger chain check.
Replays each student's transactions oldest -> newest and reports:
  - balance_before not equal to the previous balance_after (or 0 for the first)
  - balance_after not equal to balance_before + amount
  - budget.current_balance not equal to the newest balance_after
Usage: python manage.py verify_ledger_chain [--student ID]
Exits non-zero when anything is broken.
"""
from decimal import Decimal
from django.core.management.base import BaseCommand, CommandError

from balance.models import StudentBudget


def chain_problems(budget):
    """List of human-readable problems for one budget (empty when consistent)."""
    problems = []
    previous_after = Decimal('0.00')
    for tx in budget.transactions.order_by('created_at', 'id').iterator():
        if tx.balance_before != previous_after:
            problems.append(
                f"tx {tx.id}: balance_before {tx.balance_before} != previous balance_after {previous_after}"
            )
        if tx.balance_after != tx.balance_before + tx.amount:
            problems.append(
                f"tx {tx.id}: balance_after {tx.balance_after} != {tx.balance_before} + {tx.amount}"
            )
        previous_after = tx.balance_after
    if budget.current_balance != previous_after:
        problems.append(
            f"budget current_balance {budget.current_balance} != latest balance_after {previous_after}"
        )
    return problems


class Command(BaseCommand):
    help = 'Verify the balance ledger chain and budget balances'

    def add_arguments(self, parser):
        parser.add_argument('--student', type=int, help='StudentProfile id (default: all students)')

    def handle(self, *args, **options):
        budgets = StudentBudget.objects.select_related('student__user').order_by('id')
        if options.get('student'):
            budgets = budgets.filter(student_id=options['student'])
            if not budgets.exists():
                raise CommandError(f"No budget for student {options['student']}")

        checked = 0
        broken = 0
        for budget in budgets:
            checked += 1
            problems = chain_problems(budget)
            if not problems:
                continue
            broken += 1
            self.stdout.write(self.style.ERROR(
                f"Student {budget.student_id} ({budget.student.full_name}): {len(problems)} problem(s)"
            ))
            for problem in problems:
                self.stdout.write(f"  {problem}")

        if broken:
            raise CommandError(f"{broken} of {checked} budget(s) have ledger chain violations")
        self.stdout.write(self.style.SUCCESS(f"OK: {checked} budget(s) checked, ledger chain intact"))
