# SPDX-FileCopyrightText: Copyright (c) 2025 NBEL
# SPDX-License-Identifier: Apache-2.0
#
# Iterative constraint-relaxation solver (position-based, Gauss-Seidel)
# SolverRelaxation is exported from softlink.solvers; kernels live beside it.
