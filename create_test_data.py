#!/usr/bin/env python3
"""
Create a class-column workbook for trying out the seating planner.

Row 1 holds the class names; each column below lists that class's
register numbers. Columns have different lengths on purpose.
"""
import argparse
import pandas as pd
from faker import Faker

# Class name -> number of students
DEFAULT_CLASSES = {
    'II CSE A': 58,
    'II CSE B': 55,
    'III CSE A': 62,
    'III CSE B': 49,
    'IV CSE A': 60,
}


def create_class_data(classes=None, seed=42):
    """
    Build one column of register numbers per class.
    Register numbers follow the university pattern: college code, batch
    year, department code, then a running number.
    """
    fake = Faker('en_IN')
    fake.seed_instance(seed)
    classes = classes or DEFAULT_CLASSES

    college_code = fake.numerify('61##')
    columns = {}
    for index, (class_name, count) in enumerate(classes.items()):
        batch = 24 - index // 2
        start = fake.random_int(min=1, max=20)
        columns[class_name] = [
            f"{college_code}{batch}104{start + i:03d}" for i in range(count)
        ]

    # Ragged columns: shorter classes are padded with blanks
    return pd.DataFrame({name: pd.Series(numbers) for name, numbers in columns.items()})


def save_class_data(output_file='class_lists_test_data.xlsx', classes=None, seed=42):
    df = create_class_data(classes, seed)
    df.to_excel(output_file, index=False, engine='openpyxl')
    return output_file, df


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument('--output', default='class_lists_test_data.xlsx')
    parser.add_argument('--seed', type=int, default=42)
    args = parser.parse_args()

    output_file, df = save_class_data(args.output, seed=args.seed)

    print(f"✅ Class lists created: '{output_file}'")
    print(f"📊 Total Students: {int(df.count().sum())}")
    for class_name, count in df.count().items():
        print(f"   {class_name}: {count} students")
