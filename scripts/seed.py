import sys
import os
import random
import argparse
from sqlalchemy.orm import Session
from decimal import Decimal
from faker import Faker

# Add the project root to the Python path
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from household_budget.db.core import (
    Base,
    engine,
    session_local,
    ProfileDB,
    CategoryDB,
    BudgetDB,
    TagDB,
    CardholderDB,
    AccountDB,
    TransactionDB,
    TransactionSplitDB,
    AccountType,
    TransactionDirection,
    AccountRole,
    BudgetPeriod,
)
from household_budget.crud import crud_account
from household_budget.models.account import AccountCreate, AccountMemberSpec

fake = Faker()

CATEGORIES_STRUCTURE = {
    "Income": ["Paycheck", "Bonus"],
    "Housing": ["Rent", "Utilities", "Home Repair"],
    "Transportation": ["Gas", "Public Transit", "Car Maintenance"],
    "Food": ["Groceries", "Restaurants", "Coffee Shops"],
    "Entertainment": ["Streaming Services", "Hobbies"],
    "Shopping": ["Clothing", "Electronics"],
}

ACCOUNT_TEMPLATES = [
    (AccountType.CHECKING, "Joint Checking", None),
    (AccountType.SAVINGS, "Emergency Fund", None),
    (AccountType.CREDIT_CARD, "Rewards Card", Decimal("5000.00")),
    (AccountType.CASH, "Wallet", None),
]


def seed_database(household_size: int = 3):
    """
    Fill the database with one household: a few profiles sharing accounts,
    a two-level category tree, budgets, tags, cardholders and transactions.
    """
    Base.metadata.create_all(bind=engine)
    db: Session = session_local()

    try:
        if db.query(ProfileDB).count() > 0:
            print("Database appears to be already seeded. Exiting.")
            return

        print("Seeding database with a sample household...")

        # 1. Profiles
        profiles = []
        for _ in range(household_size):
            profile = ProfileDB(email=fake.unique.email(), first_name=fake.first_name(), last_name=fake.last_name())
            db.add(profile)
            profiles.append(profile)
        db.commit()
        owner, others = profiles[0], profiles[1:]
        print(f"{len(profiles)} profiles created.")

        # 2. Shared accounts, created through the membership reconciler
        for acc_type, acc_name, credit_limit in ACCOUNT_TEMPLATES:
            members = [AccountMemberSpec(user_id=str(owner.id), role=AccountRole.OWNER.value)]
            members += [
                AccountMemberSpec(user_id=str(p.id), role=random.choice([AccountRole.EDITOR, AccountRole.VIEWER]).value)
                for p in others
            ]
            crud_account.create_db_account(db, owner.id, AccountCreate(
                name=acc_name,
                type=acc_type,
                institution=fake.company() if acc_type != AccountType.CASH else None,
                credit_limit=credit_limit,
                account_members=members,
            ))
        print(f"{len(ACCOUNT_TEMPLATES)} accounts created.")

        # 3. Categories and sub-categories
        sub_categories = []
        for cat_name, sub_cat_names in CATEGORIES_STRUCTURE.items():
            parent_cat = CategoryDB(user_id=owner.id, name=cat_name)
            db.add(parent_cat)
            db.flush()
            for sub_cat_name in sub_cat_names:
                child_cat = CategoryDB(user_id=owner.id, name=sub_cat_name, parent_id=parent_cat.id)
                db.add(child_cat)
                sub_categories.append(child_cat)
        db.flush()

        # 4. Budgets, mostly on sub-categories
        for category in random.sample(sub_categories, k=min(8, len(sub_categories))):
            db.add(BudgetDB(
                user_id=owner.id,
                category_id=category.id,
                period=random.choice(list(BudgetPeriod)),
                amount=Decimal(str(round(random.uniform(25.0, 800.0), 2))),
            ))
        db.add(BudgetDB(user_id=owner.id, period=BudgetPeriod.MONTHLY, amount=Decimal("3000.00")))

        # 5. Tags and cardholders
        tags = [TagDB(user_id=owner.id, name=word) for word in set(fake.words(nb=6))]
        db.add_all(tags)
        cardholders = [CardholderDB(user_id=profile.id, name=profile.full_name) for profile in profiles]
        db.add_all(cardholders)
        db.flush()

        # 6. Transactions on the owner's accounts, some tagged, some split
        accounts = db.query(AccountDB).filter(AccountDB.user_id == owner.id).all()
        transaction_count = 0
        for account in accounts:
            for _ in range(random.randint(5, 15)):
                is_purchase = random.random() < 0.85
                amount = Decimal(str(round(random.uniform(5.0, 250.0 if is_purchase else 2500.0), 2)))
                transaction = TransactionDB(
                    user_id=owner.id, account_id=account.id, cardholder_id=cardholders[0].id,
                    direction=TransactionDirection.DEBIT if is_purchase else TransactionDirection.CREDIT,
                    amount=amount, category_id=random.choice(sub_categories).id,
                    description=fake.catch_phrase(), merchant=fake.company(),
                    occurred_at=fake.date_time_between(start_date="-90d", end_date="now"),
                )
                if tags and random.random() < 0.3:
                    transaction.tags = random.sample(tags, k=random.randint(1, min(2, len(tags))))
                if is_purchase and random.random() < 0.1:
                    first_part = (amount / 2).quantize(Decimal("0.01"))
                    transaction.splits = [
                        TransactionSplitDB(category_id=random.choice(sub_categories).id, amount=first_part),
                        TransactionSplitDB(category_id=random.choice(sub_categories).id, amount=amount - first_part),
                    ]
                db.add(transaction)
                transaction_count += 1
        print(f"{transaction_count} transactions created.")

        db.commit()
        print("Successfully seeded database.")

    except Exception as e:
        print(f"An error occurred: {e}")
        import traceback
        traceback.print_exc()
        db.rollback()
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create the schema and seed sample data.")
    parser.add_argument("--schema-only", action="store_true", help="Only create the tables")
    parser.add_argument("--household-size", type=int, default=3, help="Number of profiles to create")
    args = parser.parse_args()

    if args.schema_only:
        Base.metadata.create_all(bind=engine)
        print("Schema created.")
    else:
        seed_database(household_size=args.household_size)
